"""
Market Analytics Service

Produces the AI-analytics payload for a search term:
- Market predictions (growth, price movement, demand)
- Market anomalies (price spikes, volume drops, supplier concentration)
- Supplier recommendations with weighted scores
- Predictive insights (trend, price and demand forecasts)
- Market intelligence, risk assessment and optimization opportunities

All numbers are derived from the matched shipment records; nothing is
randomized, so the same records always give the same payload.
"""

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config.settings import TransDataConfig, default_config
from ..database.repository import TradeRecordRepository, ANALYTICS_SEARCH_FIELDS
from ..utils.parsing import parse_number, has_number, parse_shipment_date, month_key
from ..utils import statistics as stats

logger = logging.getLogger(__name__)


def empty_analytics() -> Dict:
    """Payload returned when no dated records match"""
    return {
        'predictions': [],
        'anomalies': [],
        'supplierRecommendations': [],
        'predictiveInsights': [],
        'marketIntelligence': {},
        'riskAssessment': {},
        'optimizationOpportunities': [],
    }


@dataclass
class MonthlyBucket:
    """Aggregates for one YYYY-MM bucket"""
    value: float = 0.0
    count: int = 0
    prices: List[float] = field(default_factory=list)


@dataclass
class SupplierProfile:
    """Per-supplier aggregates used for scoring"""
    shipments: int = 0
    total_value: float = 0.0
    prices: List[float] = field(default_factory=list)
    countries: set = field(default_factory=set)
    products: set = field(default_factory=set)


class MarketAnalyticsService:
    """
    Statistical market analytics over the records matching a search term

    Usage:
        service = MarketAnalyticsService(TradeRecordRepository(session))
        payload = service.generate("paracetamol")
    """

    def __init__(self, repository: Optional[TradeRecordRepository] = None,
                 config: TransDataConfig = None):
        self.repository = repository
        self.config = config or default_config
        self.thresholds = self.config.analytics

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def generate(self, search_term: str) -> Dict:
        """
        Fetch records for the search term and run every analysis

        Args:
            search_term: Matched against product description, HS code and chapter

        Returns:
            Analytics payload (empty lists/objects when nothing matches)
        """
        records = self.repository.search(
            search_term,
            fields=ANALYTICS_SEARCH_FIELDS,
            limit=self.thresholds.analytics_fetch_limit,
        )
        logger.info(f"AI analytics for '{search_term}': {len(records)} matching records")
        return self.analyze(records)

    def analyze(self, records: List[Dict]) -> Dict:
        """Run the analyses over already-fetched record dictionaries"""
        if not records:
            return empty_analytics()

        dated = self._dated_records(records)
        logger.info(f"AI analytics: {len(dated)} valid-dated records out of {len(records)} total")
        if not dated:
            return empty_analytics()

        records = [record for _, record in dated]
        months = self._monthly_buckets(dated)

        return {
            'predictions': self.market_predictions(records, months),
            'anomalies': self.detect_anomalies(records, months),
            'supplierRecommendations': self.supplier_recommendations(records),
            'predictiveInsights': self.predictive_insights(records, months),
            'marketIntelligence': self.market_intelligence(records, months),
            'riskAssessment': self.risk_assessment(records),
            'optimizationOpportunities': self.optimization_opportunities(records),
        }

    # =========================================================================
    # PREPARATION
    # =========================================================================

    @staticmethod
    def _dated_records(records: List[Dict]) -> List:
        """Pairs of (date, record) for parseable dates, oldest first"""
        dated = []
        for record in records:
            day = parse_shipment_date(record.get('shipping_bill_date'))
            if day is not None:
                dated.append((day, record))
        dated.sort(key=lambda pair: pair[0])
        return dated

    @staticmethod
    def _monthly_buckets(dated: List) -> "OrderedDict[str, MonthlyBucket]":
        buckets = defaultdict(MonthlyBucket)
        for day, record in dated:
            bucket = buckets[month_key(day)]
            bucket.value += parse_number(record.get('total_value_usd'))
            bucket.count += 1
            bucket.prices.append(parse_number(record.get('unit_rate_usd')))
        return OrderedDict(sorted(buckets.items()))

    @staticmethod
    def _positive_prices(records: List[Dict]) -> List[float]:
        prices = [parse_number(r.get('unit_rate_usd')) for r in records]
        return [p for p in prices if p > 0]

    @staticmethod
    def _unique(records: List[Dict], field_name: str) -> set:
        return {r.get(field_name) for r in records if r.get(field_name)}

    # =========================================================================
    # PREDICTIONS
    # =========================================================================

    def growth_rate(self, months: "OrderedDict[str, MonthlyBucket]", record_count: int) -> float:
        """
        Market growth from monthly value buckets, clamped to the configured bounds

        With six or more months the recent six are compared to everything
        before them; shorter histories fall back to fixed estimates.
        """
        values = [bucket.value for bucket in months.values()]
        total_months = len(values)
        window = self.thresholds.growth_window_months

        recent = values[-min(window, total_months):] if total_months else []
        previous = values[:-window] if total_months > window else []
        recent_avg = stats.mean(recent)
        previous_avg = stats.mean(previous)

        if total_months >= window:
            if previous_avg > 0 and recent_avg > 0:
                growth = (recent_avg - previous_avg) / previous_avg * 100
            elif recent_avg > 0:
                growth = 15.0 if recent[-1] - recent[0] > 0 else -5.0
            else:
                growth = 0.0
        elif total_months >= 3:
            growth = 12.0 if values[-1] - values[0] > 0 else -3.0
        elif total_months >= 1:
            growth = 8.0 if sum(values) > 0 else 5.0
        else:
            growth = 10.0 if record_count > 1000 else 5.0

        return stats.clamp(growth, self.thresholds.growth_floor, self.thresholds.growth_ceiling)

    def demand_forecast(self, months: "OrderedDict[str, MonthlyBucket]", growth: float,
                        record_count: int) -> float:
        """Expected monthly shipment count (never below 50)"""
        counts = [bucket.count for bucket in months.values()]
        total_months = len(counts)
        recent_counts = counts[-min(self.thresholds.growth_window_months, total_months):] if total_months else []
        avg_recent = stats.mean(recent_counts)

        if total_months >= 3:
            if avg_recent > 0:
                demand = avg_recent * (1 + growth / 100)
            else:
                demand = (sum(counts) / total_months) * 1.1
        elif total_months >= 1:
            demand = sum(counts) * 1.05
        else:
            demand = max(record_count * 0.02, 100) * 1.1

        return max(demand, 50.0)

    def market_predictions(self, records: List[Dict], months: "OrderedDict[str, MonthlyBucket]") -> List[Dict]:
        growth = self.growth_rate(months, len(records))
        price_volatility = stats.volatility(self._positive_prices(records))
        demand = self.demand_forecast(months, growth, len(records))

        predictions = [
            {
                'type': 'Market Growth',
                'value': round(growth, 2),
                'confidence': min(95, 70 + abs(growth) * 2),
                'timeframe': '6 months',
                'factors': [
                    'Historical growth patterns',
                    'Seasonal trends',
                    'Market demand indicators',
                    'Supply chain dynamics',
                ],
                'recommendation': (
                    'Market shows positive momentum. Consider expanding production capacity.'
                    if growth > 0 else
                    'Monitor market conditions closely. Focus on cost optimization.'
                ),
            },
            {
                'type': 'Price Movement',
                'value': 8.5 if price_volatility > 30 else 2.3,
                'confidence': 85,
                'timeframe': '6 months',
                'factors': [
                    'Price volatility analysis',
                    'Supply-demand balance',
                    'Raw material costs',
                    'Competitive landscape',
                ],
                'recommendation': (
                    'High price volatility expected. Implement dynamic pricing strategies.'
                    if price_volatility > 30 else
                    'Stable pricing environment. Focus on volume optimization.'
                ),
            },
            {
                'type': 'Demand Forecast',
                'value': round(demand, 2),
                'confidence': 80,
                'timeframe': '6 months',
                'factors': [
                    'Historical demand patterns',
                    'Seasonal variations',
                    'Market expansion indicators',
                    'Customer behavior analysis',
                ],
                'recommendation': 'Expected demand increase. Prepare inventory accordingly.',
            },
        ]

        # Zero-valued predictions get conservative fallbacks
        fallbacks = {
            'Market Growth': (8.5, 65),
            'Price Movement': (3.2, 75),
            'Demand Forecast': (max(len(records) * 0.1, 100), 70),
        }
        for prediction in predictions:
            if prediction['value'] == 0:
                prediction['value'], prediction['confidence'] = fallbacks[prediction['type']]

        logger.debug(f"Predictions: {[(p['type'], p['value']) for p in predictions]}")
        return predictions

    # =========================================================================
    # ANOMALIES
    # =========================================================================

    def detect_anomalies(self, records: List[Dict], months: "OrderedDict[str, MonthlyBucket]") -> List[Dict]:
        anomalies = []
        t = self.thresholds

        spike = stats.detect_price_spike(
            self._positive_prices(records), t.zscore_threshold, t.critical_zscore_threshold
        )
        if spike:
            anomalies.append({
                'type': 'price_spike',
                'severity': spike.severity,
                'description': f"Unusual price spike detected: ${spike.max_price:.2f} vs average ${spike.average_price:.2f}",
                'impact': 'May indicate supply shortage or market manipulation',
                'suggestedAction': 'Investigate supply chain and consider alternative suppliers',
                'confidence': 90,
            })

        drop = stats.detect_volume_drop(
            [bucket.count for bucket in months.values()], t.volume_drop_ratio, t.severe_volume_drop_ratio
        )
        if drop:
            anomalies.append({
                'type': 'volume_drop',
                'severity': drop.severity,
                'description': f"Significant volume drop: {drop.recent_average:.0f} vs {drop.previous_average:.0f} shipments",
                'impact': 'May indicate declining demand or supply chain issues',
                'suggestedAction': 'Analyze market demand and review supply chain partners',
                'confidence': 85,
            })

        supplier_counts = defaultdict(int)
        for record in records:
            if record.get('supplier_name'):
                supplier_counts[record['supplier_name']] += 1

        _, share = stats.top_share(supplier_counts)
        if share > t.supplier_concentration_threshold:
            anomalies.append({
                'type': 'supplier_change',
                'severity': stats.Severity.HIGH if share > t.severe_supplier_concentration else stats.Severity.MEDIUM,
                'description': f"High supplier concentration: {share * 100:.1f}% from top supplier",
                'impact': 'Supply chain vulnerability to single supplier dependency',
                'suggestedAction': 'Diversify supplier base to reduce concentration risk',
                'confidence': 88,
            })

        return anomalies

    # =========================================================================
    # SUPPLIER RECOMMENDATIONS
    # =========================================================================

    @staticmethod
    def price_competitiveness(avg_price: float, prices: List[float]) -> float:
        """Position of the average price in the supplier's range (cheaper is higher)"""
        if not prices:
            return 50.0
        price_range = max(prices) - min(prices)
        if price_range <= 0:
            return 50.0
        return (max(prices) - avg_price) / price_range * 100

    @staticmethod
    def reliability(shipments: int, countries: int) -> float:
        return min(100, shipments * 2) * 0.7 + min(100, countries * 20) * 0.3

    @staticmethod
    def delivery_performance(shipments: int) -> float:
        return min(100, shipments * 1.5)

    @staticmethod
    def quality_rating(shipments: int, products: int) -> float:
        return min(100, shipments * 1.2) * 0.6 + min(100, products * 10) * 0.4

    def supplier_recommendations(self, records: List[Dict]) -> List[Dict]:
        profiles = defaultdict(SupplierProfile)
        for record in records:
            name = record.get('supplier_name')
            if not name:
                continue
            profile = profiles[name]
            profile.shipments += 1
            profile.total_value += parse_number(record.get('total_value_usd'))
            price = parse_number(record.get('unit_rate_usd'))
            if price > 0:
                profile.prices.append(price)
            if record.get('country_of_origin'):
                profile.countries.add(record['country_of_origin'])
            if record.get('product_description'):
                profile.products.add(record['product_description'])

        t = self.thresholds
        recommendations = []
        for name, profile in profiles.items():
            avg_price = stats.mean(profile.prices)
            price_score = self.price_competitiveness(avg_price, profile.prices)
            reliability = self.reliability(profile.shipments, len(profile.countries))
            delivery = self.delivery_performance(profile.shipments)
            quality = self.quality_rating(profile.shipments, len(profile.products))

            score = (reliability * t.reliability_weight + price_score * t.price_weight
                     + delivery * t.delivery_weight + quality * t.quality_weight)

            risk_factors = []
            if len(profile.countries) < 2:
                risk_factors.append('Limited geographic diversity')
            if len(profile.products) < 3:
                risk_factors.append('Limited product range')
            if profile.shipments < 10:
                risk_factors.append('Limited track record')

            opportunities = []
            if len(profile.countries) > 3:
                opportunities.append('Strong geographic presence')
            if len(profile.products) > 5:
                opportunities.append('Diverse product portfolio')
            if profile.shipments > 50:
                opportunities.append('Proven track record')

            if score > 80:
                recommendation = 'Excellent supplier - consider for strategic partnership'
            elif score > 60:
                recommendation = 'Good supplier - suitable for regular business'
            else:
                recommendation = 'Monitor performance - consider alternatives'

            recommendations.append({
                'supplierName': name,
                'score': score,
                'reliability': reliability,
                'priceCompetitiveness': price_score,
                'deliveryPerformance': delivery,
                'qualityRating': quality,
                'riskFactors': risk_factors,
                'opportunities': opportunities,
                'recommendation': recommendation,
            })

        recommendations.sort(key=lambda r: r['score'], reverse=True)
        return recommendations[:t.max_supplier_recommendations]

    # =========================================================================
    # PREDICTIVE INSIGHTS
    # =========================================================================

    def predict_trend(self, monthly_counts: List[int]) -> Dict:
        """Classify the last three months of shipment counts against the three before"""
        growth = stats.window_growth(monthly_counts, self.thresholds.trend_window_months)
        if growth is None:
            return {'prediction': 'Insufficient data', 'probability': 50}

        if growth > 5:
            prediction = 'Strong upward trend'
        elif growth > 0:
            prediction = 'Moderate growth'
        else:
            prediction = 'Declining trend'
        return {'prediction': prediction, 'probability': min(95, 60 + abs(growth) * 2)}

    def forecast_prices(self, records: List[Dict], months: "OrderedDict[str, MonthlyBucket]") -> Dict:
        """
        Expected price change over the next quarter

        Change of the mean monthly price (last three months against the three
        before), bounded to +/-5% for volatile markets and +/-2% otherwise.
        """
        prices = self._positive_prices(records)
        if not prices:
            return {'prediction': 'No price data available', 'probability': 50}

        price_volatility = stats.volatility(prices)
        monthly_prices = [
            stats.mean([p for p in bucket.prices if p > 0])
            for bucket in months.values()
            if any(p > 0 for p in bucket.prices)
        ]
        change = stats.window_growth(monthly_prices, self.thresholds.trend_window_months) or 0.0
        bound = 5.0 if price_volatility > 20 else 2.0
        change = stats.clamp(change, -bound, bound)

        if change == 0:
            prediction = 'Price expected to remain stable'
        else:
            direction = 'increase' if change > 0 else 'decrease'
            prediction = f"Price expected to {direction} by {abs(change):.1f}%"
        return {'prediction': prediction, 'probability': 75}

    def forecast_demand(self, monthly_counts: List[int]) -> Dict:
        """Average of the last three monthly counts adjusted by bounded count growth"""
        recent = monthly_counts[-3:]
        avg_demand = stats.mean(recent)
        growth = stats.window_growth(monthly_counts, self.thresholds.trend_window_months) or 0.0
        predicted = avg_demand * (1 + stats.clamp(growth, -10.0, 10.0) / 100)
        return {
            'prediction': f"Demand expected to be {predicted:.0f} shipments per month",
            'probability': 70,
        }

    def predictive_insights(self, records: List[Dict], months: "OrderedDict[str, MonthlyBucket]") -> List[Dict]:
        monthly_counts = [bucket.count for bucket in months.values()]
        trend = self.predict_trend(monthly_counts)
        price = self.forecast_prices(records, months)
        demand = self.forecast_demand(monthly_counts)

        return [
            {
                'category': 'Market Trends',
                'prediction': trend['prediction'],
                'probability': trend['probability'],
                'timeframe': '6 months',
                'dataPoints': len(records),
                'methodology': 'Time series analysis with seasonal decomposition',
                'businessImpact': 'Helps in production planning and inventory management',
            },
            {
                'category': 'Price Forecasting',
                'prediction': price['prediction'],
                'probability': price['probability'],
                'timeframe': '3 months',
                'dataPoints': sum(1 for r in records if r.get('unit_rate_usd')),
                'methodology': 'Statistical price modeling with volatility analysis',
                'businessImpact': 'Enables optimal pricing strategies and cost planning',
            },
            {
                'category': 'Demand Forecasting',
                'prediction': demand['prediction'],
                'probability': demand['probability'],
                'timeframe': '4 months',
                'dataPoints': len(records),
                'methodology': 'Demand pattern analysis with seasonal adjustments',
                'businessImpact': 'Supports production planning and supply chain optimization',
            },
        ]

    # =========================================================================
    # MARKET INTELLIGENCE
    # =========================================================================

    def market_intelligence(self, records: List[Dict], months: "OrderedDict[str, MonthlyBucket]") -> Dict:
        total_value = sum(parse_number(r.get('total_value_usd')) for r in records)
        suppliers = self._unique(records, 'supplier_name')
        buyers = self._unique(records, 'buyer_name')
        countries = self._unique(records, 'country_of_origin') | self._unique(records, 'country_of_destination')

        if len(suppliers) > 100 and len(buyers) > 100:
            maturity = 'Mature'
        elif len(suppliers) > 50 or len(buyers) > 50:
            maturity = 'Growing'
        else:
            maturity = 'Emerging'

        monthly_counts = [bucket.count for bucket in months.values()]
        if len(monthly_counts) < 3:
            growth_potential = 50.0
        else:
            growth = stats.window_growth(monthly_counts, 3) or 0.0
            growth_potential = min(100, 50 + growth * 2)

        avg_value = total_value / len(records)
        return {
            'marketSize': total_value,
            'supplierDiversity': len(suppliers),
            'buyerDiversity': len(buyers),
            'geographicReach': len(countries),
            'marketMaturity': maturity,
            'competitiveIntensity': min(100, len(suppliers) * 2),
            'growthPotential': growth_potential,
            'marketEfficiency': min(100, len(suppliers) / len(records) * 1000 + avg_value / 1000),
        }

    # =========================================================================
    # RISK ASSESSMENT
    # =========================================================================

    def _records_per_supplier(self, records: List[Dict]) -> float:
        suppliers = self._unique(records, 'supplier_name')
        if not suppliers:
            return float('inf')
        return len(records) / len(suppliers)

    def risk_assessment(self, records: List[Dict]) -> Dict:
        per_supplier = self._records_per_supplier(records)
        if per_supplier > 10:
            supply_chain_risk = 80
        elif per_supplier > 5:
            supply_chain_risk = 60
        else:
            supply_chain_risk = 30

        market_risk = min(100, stats.volatility(self._positive_prices(records)) * 2)

        countries = self._unique(records, 'country_of_origin') | self._unique(records, 'country_of_destination')
        regulatory_risk = min(100, len(countries) * 5)

        avg_value = sum(parse_number(r.get('total_value_usd')) for r in records) / len(records)
        if avg_value > 100000:
            financial_risk = 20
        elif avg_value > 50000:
            financial_risk = 40
        else:
            financial_risk = 60

        overall = (supply_chain_risk + market_risk + regulatory_risk + financial_risk) / 4
        if overall > 70:
            level = 'High'
            strategies = [
                'Implement comprehensive risk monitoring',
                'Diversify supplier base',
                'Develop contingency plans',
                'Increase insurance coverage',
            ]
        elif overall > 40:
            level = 'Medium'
            strategies = [
                'Regular risk assessments',
                'Supplier performance monitoring',
                'Market trend analysis',
            ]
        else:
            level = 'Low'
            strategies = [
                'Standard risk management procedures',
                'Regular market monitoring',
            ]

        return {
            'supplyChainRisk': supply_chain_risk,
            'marketRisk': market_risk,
            'regulatoryRisk': regulatory_risk,
            'financialRisk': financial_risk,
            'overallRisk': overall,
            'riskLevel': level,
            'riskFactors': self.risk_factors(records),
            'mitigationStrategies': strategies,
        }

    def risk_factors(self, records: List[Dict]) -> List[str]:
        factors = []
        if len(self._unique(records, 'supplier_name')) < 5:
            factors.append('Limited supplier diversity')

        # Zero prices count here, unlike the market risk score
        prices = [parse_number(r.get('unit_rate_usd')) for r in records if has_number(r.get('unit_rate_usd'))]
        if stats.volatility(prices) > 30:
            factors.append('High price volatility')

        if len(records) < 100:
            factors.append('Limited market data')
        return factors

    # =========================================================================
    # OPTIMIZATION
    # =========================================================================

    def optimization_opportunities(self, records: List[Dict]) -> List[Dict]:
        opportunities = []

        prices = self._positive_prices(records)
        if prices:
            avg_price = stats.mean(prices)
            price_opportunity = min((max(prices) - avg_price) / avg_price * 100, 30)
            if price_opportunity > 10:
                opportunities.append({
                    'type': 'Price Optimization',
                    'potential': price_opportunity,
                    'description': f"Potential {price_opportunity:.1f}% cost savings through price optimization",
                    'implementation': 'Implement dynamic pricing based on market analysis',
                    'timeframe': '3-6 months',
                    'confidence': 85,
                })

        per_supplier = self._records_per_supplier(records)
        if per_supplier > 5:
            supply_opportunity = 15
        elif per_supplier > 3:
            supply_opportunity = 8
        else:
            supply_opportunity = 3

        if supply_opportunity > 5:
            opportunities.append({
                'type': 'Supply Chain Optimization',
                'potential': supply_opportunity,
                'description': f"Potential {supply_opportunity:.1f}% efficiency improvement",
                'implementation': 'Diversify suppliers and optimize routes',
                'timeframe': '6-12 months',
                'confidence': 80,
            })

        return opportunities
