"""
Tests for the AI market analytics service

Run with:
    pytest tests/test_market_analytics.py -v
"""

from collections import OrderedDict

import pytest

from transdata_nexus.config.settings import AnalyticsConfig, TransDataConfig
from transdata_nexus.services.market_analytics import (
    MarketAnalyticsService,
    MonthlyBucket,
    empty_analytics,
)


def _record(supplier, day, price='10', value='1000'):
    return {
        'supplier_name': supplier,
        'buyer_name': 'Buyer',
        'product_description': 'ORS sachets',
        'country_of_origin': 'India',
        'country_of_destination': 'Kenya',
        'unit_rate_usd': price,
        'total_value_usd': value,
        'shipping_bill_date': day,
    }


class TestEmptyInputs:
    """Tests for the empty payload"""

    def setup_method(self):
        self.service = MarketAnalyticsService()

    def test_no_records(self):
        assert self.service.analyze([]) == empty_analytics()

    def test_no_valid_dates(self):
        """Test records without parseable dates are ignored"""
        records = [_record('A', 'Not Released'), _record('B', '')]
        assert self.service.analyze(records) == empty_analytics()

    def test_generate_without_match(self, repository):
        service = MarketAnalyticsService(repository)
        assert service.generate('unobtainium') == empty_analytics()


class TestPredictions:
    """Tests for growth and trend predictions"""

    def setup_method(self):
        self.service = MarketAnalyticsService()

    def test_growth_clamped_to_ceiling(self):
        """Test doubling monthly value is capped at +50%"""
        months = OrderedDict(
            (f"2024-{m:02d}", MonthlyBucket(value=100.0 if m <= 6 else 200.0, count=1))
            for m in range(1, 13)
        )
        assert self.service.growth_rate(months, 12) == 50.0

    def test_growth_short_history(self):
        """Test fixed estimates below three months"""
        months = OrderedDict([('2024-01', MonthlyBucket(value=10.0, count=1))])
        assert self.service.growth_rate(months, 1) == 8.0

    @staticmethod
    def _months(values):
        return OrderedDict(
            (f"2024-{m:02d}", MonthlyBucket(value=float(v), count=1)) for m, v in enumerate(values, start=1)
        )

    def test_growth_recent_against_previous(self):
        """Test six recent months averaging 120 against earlier months averaging 100"""
        months = self._months([100, 100, 120, 120, 120, 120, 120, 120])
        assert self.service.growth_rate(months, 8) == pytest.approx(20.0)

    def test_growth_clamped_to_floor(self):
        months = self._months([100] * 6 + [50] * 6)
        assert self.service.growth_rate(months, 12) == -20.0

    def test_growth_without_earlier_value(self):
        """Test the 15 / -5 estimates when no earlier month carries value"""
        assert self.service.growth_rate(self._months([10, 20, 30, 40, 50, 60]), 6) == 15.0
        assert self.service.growth_rate(self._months([60, 50, 40, 30, 20, 10]), 6) == -5.0
        assert self.service.growth_rate(self._months([0, 0, 10, 20, 30, 40, 50, 60]), 8) == 15.0
        assert self.service.growth_rate(self._months([0] * 6), 6) == 0.0

    def test_growth_medium_history(self):
        assert self.service.growth_rate(self._months([10, 5, 20]), 3) == 12.0
        assert self.service.growth_rate(self._months([20, 5, 10]), 3) == -3.0

    def test_demand_forecast(self):
        months = OrderedDict(
            (f"2024-{m:02d}", MonthlyBucket(value=1.0, count=100)) for m in range(1, 4)
        )
        assert self.service.demand_forecast(months, 10.0, 300) == pytest.approx(110.0)
        assert self.service.demand_forecast(self._months([1, 1, 1]), 10.0, 3) == 50.0

    def test_predict_trend(self):
        assert self.service.predict_trend([1, 1, 1, 2, 2, 2]) == {
            'prediction': 'Strong upward trend', 'probability': 95
        }
        assert self.service.predict_trend([1, 2])['prediction'] == 'Insufficient data'

    def test_predictions_from_sample(self, paracetamol_records):
        """Test five dated months with rising value give the 12% estimate"""
        payload = self.service.analyze(paracetamol_records)
        growth, price, demand = payload['predictions']

        assert growth['type'] == 'Market Growth'
        assert growth['value'] == 12.0
        assert price['value'] == 2.3
        assert demand['value'] == 50.0


class TestSupplierScoring:
    """Tests for the weighted supplier score and its components"""

    def setup_method(self):
        self.service = MarketAnalyticsService()

    def test_component_formulas(self):
        assert self.service.reliability(5, 2) == pytest.approx(19.0)
        assert self.service.delivery_performance(5) == pytest.approx(7.5)
        assert self.service.quality_rating(5, 2) == pytest.approx(11.6)
        assert self.service.price_competitiveness(18.0, [10, 10, 10, 10, 50]) == pytest.approx(80.0)

    def test_components_capped_at_100(self):
        assert self.service.reliability(60, 6) == 100
        assert self.service.delivery_performance(80) == 100
        assert self.service.quality_rating(100, 12) == 100

    def test_price_without_range(self):
        assert self.service.price_competitiveness(0.0, []) == 50.0
        assert self.service.price_competitiveness(10.0, [10, 10]) == 50.0

    def test_weighted_score(self):
        """Test 30/25/25/20 weighting of reliability, price, delivery and quality"""
        records = [
            _record('Acme', '2024-01-05', price=price) for price in ('10', '10', '10', '10', '50')
        ]
        records[0]['country_of_origin'] = 'China'
        records[1]['product_description'] = 'ORS sachets 20g'

        recommendation, = self.service.supplier_recommendations(records)

        assert recommendation['reliability'] == pytest.approx(19.0)
        assert recommendation['priceCompetitiveness'] == pytest.approx(80.0)
        assert recommendation['deliveryPerformance'] == pytest.approx(7.5)
        assert recommendation['qualityRating'] == pytest.approx(11.6)
        assert recommendation['score'] == pytest.approx(19.0 * 0.3 + 80.0 * 0.25 + 7.5 * 0.25 + 11.6 * 0.2)
        assert recommendation['score'] == pytest.approx(29.895)
        assert recommendation['riskFactors'] == ['Limited product range', 'Limited track record']
        assert recommendation['recommendation'] == 'Monitor performance - consider alternatives'

    def test_configured_weights(self):
        config = TransDataConfig(analytics=AnalyticsConfig(
            reliability_weight=1.0, price_weight=0.0, delivery_weight=0.0, quality_weight=0.0,
        ))
        records = [_record('Acme', '2024-01-05') for _ in range(60)]

        recommendation, = MarketAnalyticsService(config=config).supplier_recommendations(records)

        # 60 shipments from one country: 100 * 0.7 + 20 * 0.3
        assert recommendation['score'] == pytest.approx(76.0)
        assert recommendation['opportunities'] == ['Proven track record']
        assert recommendation['recommendation'] == 'Good supplier - suitable for regular business'


class TestAnomalies:
    """Tests for anomaly detection"""

    def test_supplier_concentration(self):
        """Test one supplier with 80% of shipments"""
        records = [
            _record('A', '2024-01-05'),
            _record('A', '2024-02-05'),
            _record('A', '2024-03-05'),
            _record('A', '2024-04-05'),
            _record('B', '2024-05-05'),
        ]
        anomalies = MarketAnalyticsService().analyze(records)['anomalies']

        assert len(anomalies) == 1
        assert anomalies[0]['type'] == 'supplier_change'
        assert anomalies[0]['severity'] == 'high'
        assert anomalies[0]['description'] == 'High supplier concentration: 80.0% from top supplier'

    def test_volume_drop(self):
        """Test falling monthly shipment counts"""
        days = (['2024-01-10'] * 4 + ['2024-02-10'] * 4 + ['2024-03-10'] * 4
                + ['2024-04-10', '2024-05-10', '2024-06-10'])
        records = [_record(f"S{i}", day) for i, day in enumerate(days)]
        anomalies = MarketAnalyticsService().analyze(records)['anomalies']

        drops = [a for a in anomalies if a['type'] == 'volume_drop']
        assert len(drops) == 1
        assert drops[0]['severity'] == 'high'


class TestSampleMarket:
    """Tests over the paracetamol sample"""

    def setup_method(self):
        self.service = MarketAnalyticsService()

    def test_payload_keys(self, paracetamol_records):
        payload = self.service.analyze(paracetamol_records)
        assert set(payload) == set(empty_analytics())

    def test_market_intelligence(self, paracetamol_records):
        """Test the undated shipment is left out"""
        intelligence = self.service.analyze(paracetamol_records)['marketIntelligence']

        assert intelligence['marketSize'] == pytest.approx(38000)
        assert intelligence['supplierDiversity'] == 3
        assert intelligence['buyerDiversity'] == 4
        assert intelligence['geographicReach'] == 5
        assert intelligence['marketMaturity'] == 'Emerging'

    def test_supplier_recommendations(self, paracetamol_records):
        recommendations = self.service.analyze(paracetamol_records)['supplierRecommendations']

        assert len(recommendations) == 3
        scores = [r['score'] for r in recommendations]
        assert scores == sorted(scores, reverse=True)
        assert recommendations[-1]['supplierName'] == 'Gamma Drugs'
        assert 'Limited track record' in recommendations[0]['riskFactors']

    def test_predictive_insights(self, paracetamol_records):
        insights = self.service.analyze(paracetamol_records)['predictiveInsights']

        assert [i['category'] for i in insights] == ['Market Trends', 'Price Forecasting', 'Demand Forecasting']
        assert insights[0]['dataPoints'] == 5

    def test_risk_and_optimization(self, paracetamol_records):
        payload = self.service.analyze(paracetamol_records)

        assert payload['riskAssessment']['riskFactors'] == ['Limited supplier diversity', 'Limited market data']
        assert [o['type'] for o in payload['optimizationOpportunities']] == ['Price Optimization']

    def test_generate_from_repository(self, repository):
        """Test the service fetches by product description, HS code and chapter"""
        payload = MarketAnalyticsService(repository).generate('paracetamol')
        assert payload['marketIntelligence']['supplierDiversity'] == 3
