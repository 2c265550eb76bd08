"""
Chart Insight Service

Turns the data points behind a dashboard chart into insight objects:
trend direction, z-score anomalies, dominant category, high-value and
volatility flags. An optional free-text question is answered from the
generated insights.
"""

import logging
from typing import Dict, List, Optional

from ..exceptions import ValidationError
from ..utils.formatting import format_plain_number
from ..utils.parsing import parse_number
from ..utils import statistics as stats

logger = logging.getLogger(__name__)


NEXT_STEPS = [
    'Monitor trends for strategic planning',
    'Investigate anomalies for opportunities',
    'Consider data distribution for resource allocation',
]

HIGH_VALUE_THRESHOLD = 1_000_000
HIGH_VOLATILITY_CV = 0.5


def chart_statistics(values: List[float]) -> Dict[str, float]:
    return {
        'mean': stats.mean(values),
        'median': stats.median(values),
        'stdDev': stats.population_std(values),
        'min': min(values),
        'max': max(values),
        'total': sum(values),
    }


class ChartInsightService:
    """Insight generation for chart data points ({name|category, value})"""

    def __init__(self, zscore_threshold: float = 2.0):
        self.zscore_threshold = zscore_threshold

    def generate_insights(self, data: List[Dict], chart_type: str) -> List[Dict]:
        values = [parse_number(point.get('value')) for point in data]
        if not values:
            return []

        metrics = chart_statistics(values)
        anomalies = stats.zscore_outliers(values, self.zscore_threshold)
        direction, strength = stats.half_split_trend(values)
        insights = []

        if chart_type in ('line', 'trend'):
            insights.append({
                'type': 'trend',
                'title': f"{direction.capitalize()} Trend Detected",
                'description': (
                    f"The data shows a {direction} trend with {strength:.1f}% change. "
                    f"Values range from {format_plain_number(metrics['min'])} "
                    f"to {format_plain_number(metrics['max'])}."
                ),
                'confidence': min(0.95, 0.7 + strength / 100),
                'impact': 'positive' if direction == 'increasing' else 'negative',
                'metrics': metrics,
            })

        if anomalies:
            insights.append({
                'type': 'anomaly',
                'title': f"{len(anomalies)} Anomaly(ies) Detected",
                'description': (
                    f"Found {len(anomalies)} data point(s) significantly above/below "
                    f"the average of {format_plain_number(metrics['mean'])}."
                ),
                'confidence': 0.85,
                'impact': 'neutral',
                'action': 'Investigate these outliers for potential opportunities or data quality issues.',
                'dataPoints': anomalies,
                'metrics': metrics,
            })

        if chart_type in ('pie', 'bar'):
            top_index = max(range(len(values)), key=lambda i: values[i])
            top_item = data[top_index]
            share = values[top_index] / metrics['total'] * 100 if metrics['total'] else 0.0
            label = top_item.get('name') or top_item.get('category') or 'Top category'
            insights.append({
                'type': 'pattern',
                'title': 'Dominant Category Identified',
                'description': f"{label} represents {share:.1f}% of total value.",
                'confidence': 0.90,
                'impact': 'neutral',
                'action': 'Consider diversifying or focusing strategy based on this concentration.',
                'metrics': metrics,
            })

        if metrics['total'] > HIGH_VALUE_THRESHOLD:
            insights.append({
                'type': 'recommendation',
                'title': 'High-Value Opportunity',
                'description': 'Total value exceeds $1M, indicating significant market potential.',
                'confidence': 0.80,
                'impact': 'positive',
                'action': 'Consider expanding operations or increasing investment in this area.',
                'metrics': metrics,
            })

        cv = stats.coefficient_of_variation(values)
        if cv > HIGH_VOLATILITY_CV:
            insights.append({
                'type': 'pattern',
                'title': 'High Volatility Detected',
                'description': f"Data shows high variability (CV: {cv * 100:.1f}%), indicating market instability.",
                'confidence': 0.75,
                'impact': 'negative',
                'action': 'Implement risk management strategies and monitor closely.',
                'metrics': metrics,
            })

        return insights

    @staticmethod
    def answer_query(query: str, insights: List[Dict], title: str) -> str:
        """Route a question to the matching insight by keyword"""
        text = query.lower()

        if 'trend' in text or 'pattern' in text:
            for insight in insights:
                if insight['type'] == 'trend':
                    return insight['description']

        if 'anomaly' in text or 'outlier' in text:
            for insight in insights:
                if insight['type'] == 'anomaly':
                    return f"{insight['description']} {insight.get('action', '')}"

        if 'recommend' in text or 'suggest' in text:
            actions = [i['action'] for i in insights if i['type'] == 'recommendation' and i.get('action')]
            if actions:
                return f"Based on the {title} analysis: {' '.join(actions)}"

        return (
            f"I can help you analyze the {title} chart. I've identified {len(insights)} key insights "
            f"including trends, anomalies, and patterns. What specific aspect would you like me to focus on?"
        )

    def analyze(self, chart_type: str, data, title: str, query: Optional[str] = None) -> Dict:
        """
        Analyze chart data points

        Args:
            chart_type: bar, line, pie or trend
            data: List of data points with a numeric `value`
            title: Chart title used in summary text
            query: Optional question answered in `aiResponse`

        Raises:
            ValidationError: When data is missing, empty or holds non-object points
        """
        if not data or not isinstance(data, list) or not all(isinstance(point, dict) for point in data):
            raise ValidationError('Invalid chart data provided')

        title = title or 'chart'
        insights = self.generate_insights(data, chart_type)
        positive = [i for i in insights if i['impact'] == 'positive']

        response = {
            'insights': insights,
            'summary': f"Analysis of {title} reveals {len(insights)} key insights with {len(positive)} positive indicators.",
            'recommendations': [i['action'] for i in insights if i['type'] == 'recommendation' and i.get('action')],
            'riskFactors': [i['description'] for i in insights if i['impact'] == 'negative'],
            'opportunities': [i['description'] for i in positive],
            'nextSteps': list(NEXT_STEPS),
            'confidence': stats.mean(i['confidence'] for i in insights),
        }

        if query:
            response['aiResponse'] = self.answer_query(query, insights, title)

        logger.debug(f"Chart '{title}' ({chart_type}): {len(data)} points, {len(insights)} insights")
        return response
