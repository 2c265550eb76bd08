"""
Tests for chart insight generation

Run with:
    pytest tests/test_chart_insights.py -v
"""

import pytest

from transdata_nexus.exceptions import ValidationError
from transdata_nexus.services.chart_insights import ChartInsightService, NEXT_STEPS


class TestGenerateInsights:
    """Tests for insight rules"""

    def setup_method(self):
        self.service = ChartInsightService()

    def test_line_trend(self):
        """Test increasing line chart"""
        data = [{'name': m, 'value': v} for m, v in zip('ABCD', [10, 20, 30, 40])]
        insights = self.service.generate_insights(data, 'line')

        trend = insights[0]
        assert trend['type'] == 'trend'
        assert trend['title'] == 'Increasing Trend Detected'
        assert trend['impact'] == 'positive'
        assert trend['confidence'] == 0.95
        assert 'from 10 to 40' in trend['description']

    def test_dominant_category(self):
        """Test the largest bar and its share"""
        data = [{'name': 'Kenya', 'value': 100}, {'name': 'Ghana', 'value': 300}]
        insights = self.service.generate_insights(data, 'bar')

        patterns = [i for i in insights if i['title'] == 'Dominant Category Identified']
        assert len(patterns) == 1
        assert patterns[0]['description'] == 'Ghana represents 75.0% of total value.'

    def test_category_label_fallback(self):
        data = [{'category': 'Tablets', 'value': '5,000'}, {'category': 'Syrup', 'value': '1,000'}]
        insights = self.service.generate_insights(data, 'pie')
        assert insights[0]['description'].startswith('Tablets represents')

    def test_anomaly(self):
        data = [{'name': str(i), 'value': 10} for i in range(10)] + [{'name': 'x', 'value': 100}]
        insights = self.service.generate_insights(data, 'bar')

        anomalies = [i for i in insights if i['type'] == 'anomaly']
        assert anomalies[0]['title'] == '1 Anomaly(ies) Detected'
        assert anomalies[0]['dataPoints'] == [10]

    def test_high_value_and_volatility(self):
        data = [{'name': 'a', 'value': 100}, {'name': 'b', 'value': 2_000_000}]
        titles = [i['title'] for i in self.service.generate_insights(data, 'pie')]

        assert 'High-Value Opportunity' in titles
        assert 'High Volatility Detected' in titles

    def test_empty_data(self):
        assert self.service.generate_insights([], 'bar') == []


class TestAnalyze:
    """Tests for the response envelope"""

    def setup_method(self):
        self.service = ChartInsightService()
        self.data = [{'name': 'a', 'value': 100}, {'name': 'b', 'value': 2_000_000}]

    def test_invalid_data(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.analyze('bar', None, 'Exports')
        assert exc_info.value.message == 'Invalid chart data provided'

        with pytest.raises(ValidationError):
            self.service.analyze('bar', {'value': 1}, 'Exports')

    def test_non_object_points(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.analyze('bar', [1, 2, 3], 'Exports')
        assert exc_info.value.message == 'Invalid chart data provided'

        with pytest.raises(ValidationError):
            self.service.analyze('line', [{'value': 1}, 'b'], 'Exports')

    def test_envelope(self):
        response = self.service.analyze('pie', self.data, 'Exports')

        assert response['summary'].startswith('Analysis of Exports reveals 3 key insights')
        assert response['recommendations'] == [
            'Consider expanding operations or increasing investment in this area.'
        ]
        assert response['nextSteps'] == NEXT_STEPS
        assert 'aiResponse' not in response

    def test_query_routing(self):
        response = self.service.analyze('pie', self.data, 'Exports', query='What do you recommend?')
        assert response['aiResponse'].startswith('Based on the Exports analysis:')

    def test_query_fallback(self):
        response = self.service.analyze('pie', self.data, 'Exports', query='hello')
        assert response['aiResponse'].startswith("I can help you analyze the Exports chart.")
