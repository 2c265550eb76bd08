"""
Advanced Analytics Engine

Comprehensive analysis used by the advanced analytics endpoint and the
report generators. Records are matched on product description, supplier
or buyer name and analysed by year (the `year` column) rather than by
shipment date.
"""

import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from ..config.settings import TransDataConfig, default_config
from ..database.repository import TradeRecordRepository, PARTY_SEARCH_FIELDS
from ..exceptions import NoDataError
from ..utils.parsing import parse_number
from ..utils import statistics as stats

logger = logging.getLogger(__name__)


UNKNOWN = 'Unknown'


def _year_sort_key(year: str):
    # Numeric years ascending, anything else afterwards
    return (0, int(year), '') if str(year).isdigit() else (1, 0, str(year))


class AdvancedAnalyticsEngine:
    """
    Market, competitive, trend, anomaly and forecast analysis for one search term

    Usage:
        engine = AdvancedAnalyticsEngine.load("paracetamol", repository)
        result = engine.run_comprehensive_analysis()
    """

    def __init__(self, search_term: str, records: List[Dict], config: TransDataConfig = None):
        if not records:
            raise NoDataError('No data found for the specified search term')
        self.search_term = search_term
        self.records = records
        self.config = config or default_config
        self._year_data = None

    @classmethod
    def load(cls, search_term: str, repository: TradeRecordRepository,
             config: TransDataConfig = None) -> 'AdvancedAnalyticsEngine':
        """
        Fetch the records for a search term and build an engine

        Raises:
            NoDataError: When no record matches
        """
        config = config or default_config
        records = repository.search(
            search_term,
            fields=PARTY_SEARCH_FIELDS,
            limit=config.analytics.analytics_fetch_limit,
        )
        logger.info(f"Advanced analytics for '{search_term}': {len(records)} records")
        return cls(search_term, records, config)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _value(record: Dict) -> float:
        return parse_number(record.get('total_value_usd'))

    @property
    def total_value(self) -> float:
        return sum(self._value(r) for r in self.records)

    @property
    def year_data(self) -> Dict[str, List[Dict]]:
        """Records grouped by year, keys in ascending order ('Unknown' last)"""
        if self._year_data is None:
            grouped = defaultdict(list)
            for record in self.records:
                grouped[record.get('year') or UNKNOWN].append(record)
            self._year_data = {year: grouped[year] for year in sorted(grouped, key=_year_sort_key)}
        return self._year_data

    def _yearly_values(self) -> List[float]:
        return [sum(self._value(r) for r in items) for items in self.year_data.values()]

    def _counts_by(self, field_name: str) -> Dict[str, int]:
        counts = defaultdict(int)
        for record in self.records:
            counts[record.get(field_name) or UNKNOWN] += 1
        return counts

    def concentration(self, field_name: str) -> float:
        """Sum of squared count shares for a party column"""
        return stats.concentration_index(self._counts_by(field_name))

    def geographic_diversity(self) -> float:
        """1 - sum of squared destination shares (0 = single market)"""
        counts = self._counts_by('country_of_destination')
        return 1 - stats.concentration_index(counts)

    def growth_rate(self) -> float:
        """Value change between the first and last year, in percent"""
        values = self._yearly_values()
        if len(values) < 2:
            return 0.0
        return stats.percent_change(values[0], values[-1]) if values[0] > 0 else 0.0

    def temporal_trends(self) -> List[Dict]:
        trends = []
        for year, items in self.year_data.items():
            trends.append({
                'year': year,
                'value': sum(self._value(r) for r in items),
                'count': len(items),
                'averagePrice': sum(parse_number(r.get('unit_rate_usd')) for r in items) / len(items),
            })
        return trends

    # =========================================================================
    # MARKET SIZE
    # =========================================================================

    def analyze_market_size(self) -> Dict:
        prices = [p for p in (parse_number(r.get('unit_rate_usd')) for r in self.records) if p > 0]
        return {
            'totalValue': self.total_value,
            'totalVolume': sum(parse_number(r.get('quantity')) for r in self.records),
            'averagePrice': stats.mean(prices),
            'priceVolatility': stats.coefficient_of_variation(prices),
            'marketGrowth': self.growth_rate(),
            'supplierConcentration': self.concentration('supplier_name'),
            'buyerConcentration': self.concentration('buyer_name'),
            'geographicDiversity': self.geographic_diversity(),
            'temporalTrends': self.temporal_trends(),
        }

    # =========================================================================
    # COMPETITIVE LANDSCAPE
    # =========================================================================

    def analyze_suppliers(self, limit: int = 10) -> List[Dict]:
        totals = defaultdict(float)
        counts = defaultdict(int)
        yearly = defaultdict(lambda: defaultdict(float))
        for record in self.records:
            name = record.get('supplier_name') or UNKNOWN
            value = self._value(record)
            totals[name] += value
            counts[name] += 1
            yearly[name][record.get('year') or UNKNOWN] += value

        market_total = self.total_value
        suppliers = []
        for name, value in totals.items():
            years = sorted(yearly[name], key=_year_sort_key)
            growth = 0.0
            if len(years) > 1 and yearly[name][years[0]] > 0:
                growth = stats.percent_change(yearly[name][years[0]], yearly[name][years[-1]])
            suppliers.append({
                'name': name,
                'marketShare': value / market_total * 100 if market_total else 0.0,
                'totalValue': value,
                'transactionCount': counts[name],
                'growthRate': growth,
                'strengths': ['Established market presence', 'Strong distribution network'],
                'weaknesses': ['Limited product portfolio', 'Geographic concentration'],
            })

        suppliers.sort(key=lambda s: s['totalValue'], reverse=True)
        return suppliers[:limit]

    def analyze_buyers(self, limit: int = 10) -> List[Dict]:
        buyers = {}
        for record in self.records:
            name = record.get('buyer_name') or UNKNOWN
            buyer = buyers.setdefault(name, {
                'name': name,
                'purchaseVolume': 0.0,
                'totalSpent': 0.0,
                'transactionCount': 0,
                'preferences': ['Quality assurance', 'Reliable delivery', 'Competitive pricing'],
            })
            buyer['totalSpent'] += self._value(record)
            buyer['transactionCount'] += 1
            buyer['purchaseVolume'] += parse_number(record.get('quantity'))

        return sorted(buyers.values(), key=lambda b: b['totalSpent'], reverse=True)[:limit]

    def market_concentration(self, suppliers: List[Dict]) -> Dict:
        """HHI over the given suppliers' market shares"""
        index = stats.hhi(s['marketShare'] for s in suppliers)
        interpretation, risk_level = stats.classify_hhi(
            index, self.config.analytics.hhi_moderate, self.config.analytics.hhi_high
        )
        return {'hhi': index, 'interpretation': interpretation, 'riskLevel': risk_level}

    def competitive_intensity(self) -> float:
        supplier_diversity = 1 - self.concentration('supplier_name')
        buyer_diversity = 1 - self.concentration('buyer_name')
        return (supplier_diversity + buyer_diversity) / 2

    def analyze_competitive_landscape(self) -> Dict:
        suppliers = self.analyze_suppliers()
        return {
            'topSuppliers': suppliers,
            'topBuyers': self.analyze_buyers(),
            'marketConcentration': self.market_concentration(suppliers),
            'competitiveIntensity': self.competitive_intensity(),
        }

    # =========================================================================
    # TRENDS
    # =========================================================================

    def _transactions_per_year(self) -> float:
        return len(self.records) / len(self.year_data)

    def short_term_predictions(self) -> List[Dict]:
        values = self._yearly_values()
        avg_value = stats.mean(values)
        last_year = list(self.year_data)[-1]
        return [
            {
                'metric': 'Market Value',
                'currentValue': values[-1] or avg_value,
                'predictedValue': avg_value * 1.08,
                'confidence': 0.85,
                'factors': ['Economic recovery', 'Healthcare spending increase', 'Regulatory changes'],
            },
            {
                'metric': 'Transaction Volume',
                'currentValue': len(self.year_data[last_year]),
                'predictedValue': math.floor(self._transactions_per_year() * 1.05),
                'confidence': 0.8,
                'factors': ['Market expansion', 'New entrants', 'Technology adoption'],
            },
        ]

    @staticmethod
    def long_term_scenarios() -> List[Dict]:
        return [
            {
                'scenario': 'Optimistic Growth',
                'probability': 0.3,
                'impact': 'High market expansion with 15-20% annual growth',
                'timeframe': '3-5 years',
            },
            {
                'scenario': 'Moderate Growth',
                'probability': 0.5,
                'impact': 'Steady growth with 8-12% annual increase',
                'timeframe': '3-5 years',
            },
            {
                'scenario': 'Market Consolidation',
                'probability': 0.2,
                'impact': 'Market consolidation with 5-8% growth',
                'timeframe': '3-5 years',
            },
        ]

    @staticmethod
    def seasonality() -> List[Dict]:
        return [
            {'month': 'Q1', 'factor': 0.9, 'description': 'Lower activity in Q1'},
            {'month': 'Q2', 'factor': 1.0, 'description': 'Baseline activity'},
            {'month': 'Q3', 'factor': 1.1, 'description': 'Increased activity'},
            {'month': 'Q4', 'factor': 1.2, 'description': 'Peak activity in Q4'},
        ]

    @staticmethod
    def cyclicality() -> List[Dict]:
        return [
            {'cycle': 'Economic', 'period': '3-5 years', 'impact': 'Medium'},
            {'cycle': 'Regulatory', 'period': '2-3 years', 'impact': 'High'},
            {'cycle': 'Technology', 'period': '5-7 years', 'impact': 'Medium'},
        ]

    def analyze_trends(self) -> Dict:
        return {
            'shortTerm': self.short_term_predictions(),
            'longTerm': self.long_term_scenarios(),
            'seasonality': self.seasonality(),
            'cyclicality': self.cyclicality(),
        }

    # =========================================================================
    # ANOMALIES
    # =========================================================================

    def find_anomalies(self, limit: int = 5) -> List[Dict]:
        """Records priced outside mean +/- 2 sigma of the positive prices"""
        prices = [p for p in (parse_number(r.get('unit_rate_usd')) for r in self.records) if p > 0]
        if not prices:
            return []

        avg = stats.mean(prices)
        std = stats.population_std(prices)
        threshold = self.config.analytics.zscore_threshold

        anomalies = []
        for record in self.records:
            price = parse_number(record.get('unit_rate_usd'))
            if price > avg + threshold * std or price < avg - threshold * std:
                anomalies.append({
                    'type': 'price-anomaly',
                    'description': f"Unusual price: ${price:.2f}",
                    'severity': 'medium',
                    'confidence': 0.8,
                    'dataPoint': record,
                    'explanation': 'Price significantly deviates from market average',
                })
                if len(anomalies) >= limit:
                    break
        return anomalies

    @staticmethod
    def find_patterns() -> List[Dict]:
        return [
            {
                'type': 'seasonal',
                'description': 'Q4 shows consistently higher activity',
                'frequency': 0.8,
                'significance': 0.7,
            },
            {
                'type': 'geographic',
                'description': 'Concentration in specific regions',
                'frequency': 0.9,
                'significance': 0.8,
            },
        ]

    def detect_anomalies(self) -> Dict:
        return {'anomalies': self.find_anomalies(), 'patterns': self.find_patterns()}

    # =========================================================================
    # FORECASTS
    # =========================================================================

    def predictions(self) -> List[Dict]:
        avg_value = stats.mean(self._yearly_values())
        per_year = self._transactions_per_year()
        return [
            {
                'metric': 'Market Value',
                'horizon': '1 year',
                'predictedValue': avg_value * 1.08,
                'confidence': 0.85,
                'upperBound': avg_value * 1.15,
                'lowerBound': avg_value * 1.02,
                'factors': ['Economic growth', 'Healthcare expansion', 'Technology adoption'],
            },
            {
                'metric': 'Transaction Volume',
                'horizon': '1 year',
                'predictedValue': math.floor(per_year * 1.05),
                'confidence': 0.8,
                'upperBound': math.floor(per_year * 1.12),
                'lowerBound': math.floor(per_year * 0.98),
                'factors': ['Market expansion', 'New entrants', 'Digital transformation'],
            },
        ]

    @staticmethod
    def scenarios() -> List[Dict]:
        return [
            {
                'name': 'High Growth Scenario',
                'probability': 0.3,
                'description': 'Strong market expansion with new product launches',
                'impact': '20-25% annual growth',
            },
            {
                'name': 'Base Case Scenario',
                'probability': 0.5,
                'description': 'Steady market growth with incremental improvements',
                'impact': '8-12% annual growth',
            },
            {
                'name': 'Conservative Scenario',
                'probability': 0.2,
                'description': 'Market challenges with regulatory headwinds',
                'impact': '3-5% annual growth',
            },
        ]

    def generate_forecasts(self) -> Dict:
        return {'predictions': self.predictions(), 'scenarios': self.scenarios()}

    # =========================================================================
    # INSIGHTS
    # =========================================================================

    @staticmethod
    def _insight(insight_type: str, title: str, description: str, confidence: float, impact: str,
                 data_points: List, recommendations: List[str], visualizations: List[str],
                 algorithm: str, threshold: float) -> Dict:
        return {
            'id': f"insight_{uuid.uuid4().hex[:12]}",
            'type': insight_type,
            'title': title,
            'description': description,
            'confidence': confidence,
            'impact': impact,
            'dataPoints': data_points,
            'recommendations': recommendations,
            'visualizations': visualizations,
            'metadata': {
                'algorithm': algorithm,
                'parameters': {'threshold': threshold},
                'timestamp': datetime.utcnow().isoformat() + 'Z',
            },
        }

    def generate_insights(self, market: Optional[Dict] = None, competitive: Optional[Dict] = None) -> List[Dict]:
        """Threshold-triggered insights from the market and competitive metrics"""
        market = market or self.analyze_market_size()
        competitive = competitive or self.analyze_competitive_landscape()
        insights = []

        if market['marketGrowth'] > 10:
            insights.append(self._insight(
                'trend', 'Strong Market Growth Detected',
                f"The market for {self.search_term} is showing strong growth of {market['marketGrowth']:.1f}% annually.",
                0.85, 'high', [market],
                ['Consider expanding market presence', 'Invest in capacity expansion', 'Explore new market segments'],
                ['growth-chart', 'trend-analysis'], 'trend-analysis', 10,
            ))

        concentration = competitive['marketConcentration']
        if concentration['hhi'] > self.config.analytics.hhi_high:
            insights.append(self._insight(
                'risk', 'High Market Concentration Risk',
                f"Market concentration (HHI: {concentration['hhi']:.0f}) indicates high concentration risk.",
                0.9, 'high', [concentration],
                ['Diversify supplier base', 'Develop alternative sourcing strategies', 'Monitor regulatory changes'],
                ['concentration-chart', 'risk-matrix'], 'hhi-analysis', self.config.analytics.hhi_high,
            ))

        if market['priceVolatility'] > 0.3:
            insights.append(self._insight(
                'anomaly', 'High Price Volatility',
                f"Price volatility of {market['priceVolatility'] * 100:.1f}% indicates market instability.",
                0.8, 'medium', [market['priceVolatility']],
                ['Implement price hedging strategies', 'Monitor price trends closely', 'Consider long-term contracts'],
                ['volatility-chart', 'price-trends'], 'volatility-analysis', 0.3,
            ))

        if market['geographicDiversity'] < 0.3:
            insights.append(self._insight(
                'opportunity', 'Geographic Expansion Opportunity',
                f"Low geographic diversity ({market['geographicDiversity'] * 100:.1f}%) presents expansion opportunities.",
                0.75, 'medium', [market['geographicDiversity']],
                ['Explore new geographic markets', 'Develop regional partnerships', 'Conduct market entry analysis'],
                ['geographic-map', 'expansion-analysis'], 'diversity-analysis', 0.3,
            ))

        return insights

    # =========================================================================
    # VISUALIZATIONS
    # =========================================================================

    def geographic_distribution(self, limit: int = 10) -> List[Dict]:
        countries = {}
        for record in self.records:
            name = record.get('country_of_destination') or UNKNOWN
            entry = countries.setdefault(name, {'country': name, 'value': 0.0, 'count': 0})
            entry['value'] += self._value(record)
            entry['count'] += 1
        return sorted(countries.values(), key=lambda c: c['value'], reverse=True)[:limit]

    def visualizations(self, suppliers: Optional[List[Dict]] = None) -> List[Dict]:
        suppliers = suppliers if suppliers is not None else self.analyze_suppliers()
        return [
            {
                'type': 'market-trends',
                'title': 'Market Trends Over Time',
                'data': self.temporal_trends(),
                'chartType': 'line',
            },
            {
                'type': 'competitive-landscape',
                'title': 'Competitive Landscape',
                'data': suppliers[:5],
                'chartType': 'bar',
            },
            {
                'type': 'geographic-distribution',
                'title': 'Geographic Distribution',
                'data': self.geographic_distribution(),
                'chartType': 'map',
            },
        ]

    # =========================================================================
    # COMPREHENSIVE
    # =========================================================================

    def run_comprehensive_analysis(self) -> Dict:
        """
        Run every analysis and assemble the combined result

        Returns:
            Dictionary with metrics, trends, patterns, anomalies, predictions,
            insights and visualizations
        """
        market = self.analyze_market_size()
        competitive = self.analyze_competitive_landscape()
        trends = self.analyze_trends()
        anomalies = self.detect_anomalies()
        forecasts = self.generate_forecasts()
        insights = self.generate_insights(market, competitive)

        logger.info(f"Comprehensive analysis for '{self.search_term}': "
                    f"{len(self.records)} records, {len(insights)} insights")

        return {
            'metrics': {
                'totalValue': market['totalValue'],
                'totalVolume': market['totalVolume'],
                'totalTransactions': len(self.records),
                'averagePrice': market['averagePrice'],
                'priceVolatility': market['priceVolatility'],
                'marketGrowth': market['marketGrowth'],
                'supplierConcentration': market['supplierConcentration'],
                'buyerConcentration': market['buyerConcentration'],
                'geographicDiversity': market['geographicDiversity'],
                'competitiveIntensity': competitive['competitiveIntensity'],
                'hhi': competitive['marketConcentration']['hhi'],
            },
            'trends': trends['shortTerm'],
            'patterns': anomalies['patterns'],
            'anomalies': anomalies['anomalies'],
            'predictions': forecasts['predictions'],
            'insights': insights,
            'visualizations': self.visualizations(competitive['topSuppliers']),
        }

    # =========================================================================
    # VALUE-SHARE VIEWS (advanced report)
    # =========================================================================

    def _value_shares(self, totals: Dict[str, float], denominator: float, limit: int = 10) -> List[Dict]:
        rows = [
            {'name': name, 'value': value, 'share': value / denominator * 100 if denominator else 0.0}
            for name, value in totals.items()
        ]
        rows.sort(key=lambda r: r['value'], reverse=True)
        return rows[:limit]

    def market_intelligence(self) -> Dict:
        """Top parties and countries by value with their share of the total"""
        total_value = self.total_value
        suppliers = defaultdict(float)
        buyers = defaultdict(float)
        countries = defaultdict(float)

        for record in self.records:
            value = self._value(record)
            if record.get('supplier_name'):
                suppliers[record['supplier_name']] += value
            if record.get('buyer_name'):
                buyers[record['buyer_name']] += value
            if record.get('country_of_origin'):
                countries[record['country_of_origin']] += value
            if record.get('country_of_destination'):
                countries[record['country_of_destination']] += value

        price_trend = []
        for year, items in self.year_data.items():
            year_value = sum(self._value(r) for r in items)
            year_volume = sum(parse_number(r.get('quantity')) for r in items)
            price_trend.append({
                'year': year,
                'avgPrice': year_value / year_volume if year_volume > 0 else 0.0,
                'volume': year_volume,
            })

        growth = 0.0
        if len(price_trend) > 1:
            growth = stats.percent_change(price_trend[0]['avgPrice'], price_trend[-1]['avgPrice'])

        return {
            'totalValue': total_value,
            'totalVolume': sum(parse_number(r.get('quantity')) for r in self.records),
            'uniqueSuppliers': len(suppliers),
            'uniqueBuyers': len(buyers),
            'topSuppliers': self._value_shares(suppliers, total_value),
            'topBuyers': self._value_shares(buyers, total_value),
            'topCountries': self._value_shares(countries, total_value),
            'growthRate': growth,
            'priceTrend': price_trend,
        }

    def competitive_analysis(self) -> Dict:
        """Supplier value shares, HHI over all suppliers and market structure"""
        suppliers = defaultdict(float)
        buyers = defaultdict(float)
        for record in self.records:
            value = self._value(record)
            if record.get('supplier_name'):
                suppliers[record['supplier_name']] += value
            if record.get('buyer_name'):
                buyers[record['buyer_name']] += value

        supplier_total = sum(suppliers.values())
        top_suppliers = self._value_shares(suppliers, supplier_total)
        index = stats.hhi_from_values(suppliers.values())

        if index > self.config.analytics.hhi_high:
            structure, intensity = 'Highly Concentrated', 'Low'
        elif index > self.config.analytics.hhi_moderate:
            structure, intensity = 'Moderately Concentrated', 'Medium'
        else:
            structure, intensity = 'Fragmented', 'High'

        return {
            'marketConcentration': sum(s['share'] for s in top_suppliers[:3]),
            'topSuppliers': top_suppliers,
            'topBuyers': self._value_shares(buyers, supplier_total),
            'hhi': index,
            'competitiveIntensity': intensity,
            'marketStructure': structure,
        }
