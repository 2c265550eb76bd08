"""
Search Service

Backs the search, quick-search, quick-summary and platform analytics
endpoints. Every operation queries the repository for the matching
shipment records and reduces them in memory.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from ..config.settings import TransDataConfig, default_config
from ..database.repository import TradeRecordRepository, PRODUCT_SEARCH_FIELDS
from ..exceptions import ValidationError
from ..utils.normalization import (
    normalize_company_name,
    normalize_country_name,
    is_placeholder_party,
    others_label,
    product_category,
)
from ..utils.parsing import parse_number, parse_shipment_date, clean_text
from ..utils import statistics as stats
from .cache_service import TradeCache, generate_cache_key

logger = logging.getLogger(__name__)


MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

ALL_DATA_RANGE = 'All available data'

PRICE_RANGES = [
    (0, 10, '$0-$10'),
    (10, 50, '$10-$50'),
    (50, 100, '$50-$100'),
    (100, 500, '$100-$500'),
    (500, float('inf'), '$500+'),
]

# Column defaults applied to quick-summary trade records
TRADE_RECORD_DEFAULTS = {
    'supplier_name': 'Unknown Supplier',
    'buyer_name': 'Unknown Buyer',
    'product_description': 'Unknown Product',
    'hs_code': 'Unknown HS Code',
    'total_value_usd': '0',
    'shipping_bill_date': 'Unknown Date',
    'country_of_destination': 'Unknown Country',
    'quantity': '0',
    'uqc': 'Unknown UQC',
}

ANALYSIS_TYPES = ('supplier-customer', 'geographic')


@dataclass
class CachedPayload:
    """Service response plus whether it came from the cache"""
    data: Dict
    cache_hit: bool = False


# =============================================================================
# REDUCERS
# =============================================================================

def _value(record: Dict) -> float:
    return parse_number(record.get('total_value_usd'))


def _named(value: Any) -> bool:
    return value is not None and str(value).strip() != ''


def monthly_groups(records: List[Dict]) -> Dict[Tuple[int, int], Dict]:
    """
    Value and count per (year, month) of the parseable shipping dates

    Returns:
        Dict keyed by (year, month) in ascending order
    """
    groups = defaultdict(lambda: {'value': 0.0, 'count': 0})
    for record in records:
        day = parse_shipment_date(record.get('shipping_bill_date'))
        if day is None:
            continue
        bucket = groups[(day.year, day.month)]
        bucket['value'] += _value(record)
        bucket['count'] += 1
    return {key: groups[key] for key in sorted(groups)}


def group_value_counts(records: List[Dict], field_name: str, default: Optional[str] = None) -> Dict[str, Dict]:
    """Count and value per distinct field value; blanks use `default` or are skipped"""
    groups = defaultdict(lambda: {'count': 0, 'value': 0.0})
    for record in records:
        key = record.get(field_name)
        if not _named(key):
            if default is None:
                continue
            key = default
        groups[key]['count'] += 1
        groups[key]['value'] += _value(record)
    return groups


def top_groups(groups: Dict[str, Dict], label: str, sort_by: str = 'value', limit: int = 5) -> List[Dict]:
    ranked = sorted(groups.items(), key=lambda item: item[1][sort_by], reverse=True)[:limit]
    return [{label: name, 'count': data['count'], 'value': data['value']} for name, data in ranked]


def _yearly_growth(records: List[Dict]) -> float:
    """Value change between the first and last year present, in percent"""
    yearly = defaultdict(float)
    for record in records:
        year = clean_text(record.get('year'))
        if year.isdigit():
            yearly[int(year)] += _value(record)
    if len(yearly) < 2:
        return 0.0
    years = sorted(yearly)
    return stats.percent_change(yearly[years[0]], yearly[years[-1]])


def _format_month_year(day: date) -> str:
    return day.strftime('%B %Y')


class SearchService:
    """
    Search and summary operations over the shipment records

    Usage:
        service = SearchService(TradeRecordRepository(session), TradeCache(cache))
        payload = service.search("paracetamol")
    """

    def __init__(self, repository: TradeRecordRepository, cache: Optional[TradeCache] = None,
                 config: TransDataConfig = None):
        self.repository = repository
        self.cache = cache or TradeCache()
        self.config = config or default_config

    @property
    def limits(self):
        return self.config.analytics

    @staticmethod
    def _require_query(q: Optional[str]) -> str:
        if q is None or q.strip() == '':
            raise ValidationError("Query parameter 'q' is required.")
        return q.strip()

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search(self, q: str, import_country: Optional[str] = None, export_country: Optional[str] = None,
               exporter: Optional[str] = None, importer: Optional[str] = None) -> CachedPayload:
        """
        Product search with filtered results and sample-based analytics

        Results honour the filters; aggregates and analytics cover every
        record matching the term, computed over a sample and scaled.

        Raises:
            ValidationError: When `q` is missing or blank
        """
        q = self._require_query(q)
        filters = {
            'import_country': import_country,
            'export_country': export_country,
            'exporter': exporter,
            'importer': importer,
        }
        has_filters = any(_named(v) for v in filters.values())

        cache_key = generate_cache_key('search', {'q': q.lower(), **{k: v or '' for k, v in filters.items()}})
        cached = self.cache.get(cache_key)
        if cached is not None:
            return CachedPayload(cached, cache_hit=True)

        result_limit = self.limits.filtered_result_limit if has_filters else self.limits.search_result_limit
        results = self.repository.search(q, PRODUCT_SEARCH_FIELDS, filters=filters, limit=result_limit)
        total_count = self.repository.count(q, PRODUCT_SEARCH_FIELDS)
        sample = self.repository.search(q, PRODUCT_SEARCH_FIELDS, limit=self.limits.search_sample_size)

        payload = {
            'results': results,
            **self._sample_analytics(q, sample, total_count),
        }

        self.cache.set(cache_key, payload, timeout=self.config.cache.default_timeout)
        logger.info(f"Search '{q}': {len(results)} results of {total_count} (filters={has_filters})")
        return CachedPayload(payload)

    def _sample_analytics(self, q: str, sample: List[Dict], total_count: int) -> Dict:
        sample_size = len(sample)
        scale = total_count / sample_size if sample_size else 0.0
        total_value = sum(_value(r) for r in sample) * scale

        unique_buyers = {r['buyer_name'] for r in sample if _named(r.get('buyer_name'))}
        unique_suppliers = {r['supplier_name'] for r in sample if _named(r.get('supplier_name'))}

        prices = [p for p in (parse_number(r.get('unit_rate_usd')) for r in sample) if p > 0]
        avg_price = stats.mean(prices)
        price_volatility = stats.volatility(prices)

        # Last 12 monthly buckets, oldest first
        months = list(monthly_groups(sample).items())[-12:]
        monthly_stats = [
            {'month': MONTH_ABBREVIATIONS[month - 1], 'value': data['value'], 'count': data['count']}
            for (year, month), data in months
        ]
        recent_counts = [m['count'] for m in monthly_stats[-6:]]
        earlier_counts = [m['count'] for m in monthly_stats[:-6]]
        market_growth = 0.0
        if earlier_counts and stats.mean(earlier_counts) > 0:
            market_growth = stats.percent_change(stats.mean(earlier_counts), stats.mean(recent_counts))

        routes = defaultdict(lambda: {'count': 0, 'value': 0.0})
        for record in sample:
            key = (record.get('country_of_origin') or 'Unknown', record.get('country_of_destination') or 'Unknown')
            routes[key]['count'] += 1
            routes[key]['value'] += _value(record)
        trade_routes = [
            {
                'origin': origin,
                'destination': destination,
                'count': data['count'],
                'value': data['value'],
                'frequency': data['count'] / sample_size * 100,
            }
            for (origin, destination), data in sorted(routes.items(), key=lambda i: i[1]['value'], reverse=True)[:8]
        ]

        chapters = group_value_counts(sample, 'chapter', default='Unknown')
        product_categories = sorted(
            (
                {
                    'category': f"Chapter {chapter}",
                    'count': data['count'],
                    'value': data['value'],
                    'percentage': data['count'] / sample_size * 100,
                }
                for chapter, data in chapters.items()
            ),
            key=lambda c: c['value'], reverse=True,
        )

        modes = group_value_counts(sample, 'mode', default='Unknown')
        shipment_modes = sorted(
            (
                {
                    'mode': mode,
                    'count': data['count'],
                    'value': data['value'],
                    'percentage': data['count'] / sample_size * 100,
                }
                for mode, data in modes.items()
            ),
            key=lambda m: m['count'], reverse=True,
        )

        price_distribution = []
        for low, high, label in PRICE_RANGES:
            in_range = sum(1 for p in prices if low <= p < high)
            share = in_range / len(prices) * 100 if prices else 0.0
            price_distribution.append({
                'range': label,
                'count': round(share / 100 * total_count),
                'percentage': share,
            })

        supplier_count = len(unique_suppliers)
        price_score = 85 if price_volatility < 20 else 70 if price_volatility < 40 else 50
        supply_chain_risk = 80 if supplier_count < 10 else 50 if supplier_count < 50 else 20
        market_risk = 80 if price_volatility > 50 else 60 if price_volatility > 30 else 40
        overall = (supply_chain_risk + 30 + market_risk + 30) / 4
        supplier_shares = group_value_counts(sample, 'supplier_name')

        return {
            'aggregates': {
                'totalRecords': total_count,
                'uniqueBuyers': len(unique_buyers),
                'uniqueSuppliers': supplier_count,
                'totalValueUSD': total_value,
            },
            'countryStats': {
                'topImportCountries': [
                    {'country': country, 'count': count}
                    for country, count in self.repository.top_counts(q, 'country_of_destination')
                ],
                'topExportCountries': [
                    {'country': country, 'count': count}
                    for country, count in self.repository.top_counts(q, 'country_of_origin')
                ],
                'topUniqueExporters': top_groups(supplier_shares, 'exporter'),
                'topUniqueImporters': top_groups(group_value_counts(sample, 'buyer_name'), 'importer'),
            },
            'monthlyStats': monthly_stats,
            'analytics': {
                'priceAnalysis': {
                    'avgPrice': avg_price,
                    'minPrice': min(prices) if prices else 0.0,
                    'maxPrice': max(prices) if prices else 0.0,
                    'priceVolatility': price_volatility,
                    'priceDistribution': price_distribution,
                },
                'tradeRoutes': trade_routes,
                'productCategories': product_categories,
                'shipmentModes': shipment_modes,
                'competitiveAnalysis': {
                    'supplierDiversity': supplier_count / sample_size * 100 if sample_size else 0.0,
                    'buyerDiversity': len(unique_buyers) / sample_size * 100 if sample_size else 0.0,
                    'marketConcentration': stats.hhi_from_values(d['value'] for d in supplier_shares.values()) / 100,
                    'priceCompetitiveness': price_score,
                },
                'marketIntelligence': {
                    'marketSize': total_value,
                    'marketGrowth': market_growth,
                    'marketMaturity': 'Mature' if total_count > 1000 else 'Growing' if total_count > 500 else 'Emerging',
                    'entryBarriers': 'Low' if supplier_count > 100 else 'Medium' if supplier_count > 50 else 'High',
                    'competitiveIntensity': supplier_count / sample_size * 100 if sample_size else 0.0,
                    'profitPotential': price_score,
                },
                'riskAssessment': {
                    'supplyChainRisk': supply_chain_risk,
                    'regulatoryRisk': 30,
                    'marketRisk': market_risk,
                    'currencyRisk': 30,
                    'overallRisk': 'High' if overall > 70 else 'Medium' if overall > 40 else 'Low',
                },
                'opportunities': [
                    {
                        'type': 'Market Expansion',
                        'description': 'High growth potential in emerging markets',
                        'potential': 85 if market_growth > 10 else 60,
                        'confidence': 80,
                    },
                    {
                        'type': 'Supplier Diversification',
                        'description': 'Opportunity to reduce dependency on major suppliers',
                        'potential': 90 if supplier_count < 20 else 50,
                        'confidence': 75,
                    },
                    {
                        'type': 'Price Optimization',
                        'description': 'Potential for price optimization based on market analysis',
                        'potential': 80 if price_volatility > 30 else 60,
                        'confidence': 70,
                    },
                    {
                        'type': 'New Product Categories',
                        'description': 'Opportunity to expand into new product categories',
                        'potential': 85 if len(product_categories) < 5 else 60,
                        'confidence': 65,
                    },
                ],
            },
        }

    # =========================================================================
    # SEARCH ANALYTICS (all matching records)
    # =========================================================================

    def search_analytics(self, q: str, import_country: Optional[str] = None,
                         export_country: Optional[str] = None, exporter: Optional[str] = None,
                         importer: Optional[str] = None) -> Dict:
        """Aggregates, country stats and full monthly history over every matching record"""
        q = self._require_query(q)
        filters = {
            'import_country': import_country,
            'export_country': export_country,
            'exporter': exporter,
            'importer': importer,
        }
        records = self.repository.search(q, PRODUCT_SEARCH_FIELDS, filters=filters,
                                         limit=self.limits.analytics_fetch_limit)

        dates = [d for d in (parse_shipment_date(r.get('shipping_bill_date')) for r in records) if d]
        date_range = None
        if dates:
            start, end = min(dates), max(dates)
            date_range = {
                'start': _format_month_year(start),
                'end': _format_month_year(end),
                'startDate': start.isoformat(),
                'endDate': end.isoformat(),
            }

        imports = group_value_counts(records, 'country_of_destination')
        exports = group_value_counts(records, 'country_of_origin')

        return {
            'aggregates': {
                'totalRecords': len(records),
                'uniqueBuyers': len({r['buyer_name'] for r in records if _named(r.get('buyer_name'))}),
                'uniqueSuppliers': len({r['supplier_name'] for r in records if _named(r.get('supplier_name'))}),
                'totalValueUSD': sum(_value(r) for r in records),
                'dateRange': date_range,
            },
            'countryStats': {
                'topImportCountries': top_groups(imports, 'country', sort_by='count'),
                'topExportCountries': top_groups(exports, 'country', sort_by='count'),
                'topUniqueExporters': top_groups(group_value_counts(records, 'supplier_name'), 'exporter', sort_by='count'),
                'topUniqueImporters': top_groups(group_value_counts(records, 'buyer_name'), 'importer', sort_by='count'),
            },
            'monthlyStats': [
                {'month': f"{MONTH_ABBREVIATIONS[month - 1]} {year}", 'value': data['value'], 'count': data['count']}
                for (year, month), data in monthly_groups(records).items()
            ],
        }

    # =========================================================================
    # QUICK SEARCH
    # =========================================================================

    def quick_search(self, q: str) -> Dict:
        q = self._require_query(q)
        limit = self.limits.quick_search_limit
        results = self.repository.search(q, PRODUCT_SEARCH_FIELDS, limit=limit, newest_first=True)
        return {
            'results': results,
            'pagination': {
                'page': 1,
                'limit': limit,
                'total': self.repository.count(q, PRODUCT_SEARCH_FIELDS),
                'hasMore': False,
                'totalPages': 1,
            },
        }

    # =========================================================================
    # QUICK SUMMARY: TRADE RECORDS
    # =========================================================================

    @staticmethod
    def empty_trade_summary() -> Dict:
        return {
            'records': [],
            'summary': {
                'totalRecords': 0,
                'totalValue': 0,
                'averageValue': 0,
                'uniqueSuppliers': 0,
                'uniqueBuyers': 0,
            },
            'dateRange': ALL_DATA_RANGE,
        }

    def trade_records_summary(self, q: Optional[str], limit: Optional[int] = None) -> CachedPayload:
        """
        Highest-value dated records for a term with a summary block

        A blank term or a failing database gives the empty summary rather
        than an error.
        """
        q = (q or '').strip()
        limit = limit or self.limits.trade_summary_limit
        cache_key = generate_cache_key('trade_records', {'q': q.lower(), 'limit': limit})

        cached = self.cache.get(cache_key)
        if cached is not None:
            return CachedPayload(cached, cache_hit=True)

        if not q:
            return CachedPayload(self.empty_trade_summary())

        try:
            records = self.repository.search(q, PRODUCT_SEARCH_FIELDS, dated_only=True,
                                             limit=self.limits.analytics_fetch_limit)
        except Exception as e:
            logger.error(f"Trade records query failed for '{q}': {e}", exc_info=True)
            payload = self.empty_trade_summary()
            self.cache.set(cache_key, payload, timeout=self.config.cache.trade_summary_timeout)
            return CachedPayload(payload)

        dated = [r for r in records if clean_text(r.get('shipping_bill_date')).lower() != 'not released']
        if not dated and records:
            dated = records
        dated.sort(key=_value, reverse=True)
        dated = dated[:limit]

        total_value = sum(_value(r) for r in dated)
        transformed = []
        for index, record in enumerate(dated, start=1):
            row = {'id': f"record-{index}"}
            for column, default in TRADE_RECORD_DEFAULTS.items():
                row[column] = record.get(column) or default
            transformed.append(row)

        payload = {
            'records': transformed,
            'summary': {
                'totalRecords': len(dated),
                'totalValue': total_value,
                'averageValue': total_value / len(dated) if dated else 0,
                'uniqueSuppliers': len({r['supplier_name'] for r in dated if r.get('supplier_name')}),
                'uniqueBuyers': len({r['buyer_name'] for r in dated if r.get('buyer_name')}),
            },
            'dateRange': ALL_DATA_RANGE,
        }
        self.cache.set(cache_key, payload, timeout=self.config.cache.trade_summary_timeout)
        logger.info(f"Trade records summary '{q}': {len(dated)} records")
        return CachedPayload(payload)

    # =========================================================================
    # QUICK SUMMARY: SUPPLIER / CUSTOMER
    # =========================================================================

    def supplier_customer_summary(self, q: Optional[str], limit: Optional[int] = None,
                                  analysis_type: str = 'supplier-customer') -> CachedPayload:
        """
        Top suppliers with their customers, or top destination countries with
        their importers

        Args:
            q: Product search term
            limit: Number of suppliers/countries returned
            analysis_type: 'supplier-customer' or 'geographic'
        """
        started = time.monotonic()
        q = (q or '').strip()
        limit = limit or self.limits.supplier_summary_limit
        if analysis_type not in ANALYSIS_TYPES:
            analysis_type = 'supplier-customer'

        cache_key = generate_cache_key('supplier_customer_summary', {
            'q': q.lower(),
            'limit': limit,
            'type': analysis_type,
        })
        cached = self.cache.get(cache_key)
        if cached is not None:
            payload = dict(cached)
            payload['performance'] = self._performance(started, cache_hit=True, record_count=0)
            return CachedPayload(payload, cache_hit=True)

        if not q:
            payload = {
                'type': 'supplier-customer',
                'dateRange': ALL_DATA_RANGE,
                'topSuppliers': [],
                'summary': {'totalValue': 0, 'totalShipments': 0, 'averageValue': 0, 'supplierCount': 0},
                'performance': self._performance(started, cache_hit=False, record_count=0),
            }
            return CachedPayload(payload)

        records = self.repository.search(q, PRODUCT_SEARCH_FIELDS, dated_only=True,
                                         limit=self.limits.analytics_fetch_limit)

        if analysis_type == 'geographic':
            payload = self._geographic_summary(records, limit)
        else:
            payload = self._supplier_summary(records, limit)

        self.cache.set(cache_key, payload, timeout=self.config.cache.supplier_summary_timeout)
        payload = dict(payload)
        payload['performance'] = self._performance(started, cache_hit=False, record_count=len(records))
        logger.info(f"Supplier summary '{q}' ({analysis_type}): {len(records)} records")
        return CachedPayload(payload)

    @staticmethod
    def _performance(started: float, cache_hit: bool, record_count: int) -> Dict:
        return {
            'queryTime': round((time.monotonic() - started) * 1000),
            'cacheHit': cache_hit,
            'recordCount': record_count,
        }

    @staticmethod
    def _breakdown(groups: Dict[str, Dict], limit: int, child_label: str, kind: str) -> Tuple[List[Dict], Dict]:
        """
        Rank parent groups by value and split each into its top 5 children
        plus a remainder row

        Returns:
            Tuple of (rows, totals)
        """
        parents = sorted(groups.items(), key=lambda item: item[1]['value'], reverse=True)
        total_value = sum(data['value'] for _, data in parents)
        total_shipments = sum(data['shipments'] for _, data in parents)

        rows = []
        for name, data in parents[:limit]:
            children = sorted(data['children'].items(), key=lambda item: item[1]['value'], reverse=True)
            child_rows = [
                {
                    'name': child,
                    'value': child_data['value'],
                    'shipments': child_data['shipments'],
                    'percentage': child_data['value'] / data['value'] * 100 if data['value'] > 0 else 0,
                }
                for child, child_data in children[:5]
            ]
            if len(children) > 5:
                rest_value = data['value'] - sum(c['value'] for c in child_rows)
                rest_shipments = data['shipments'] - sum(c['shipments'] for c in child_rows)
                if rest_value > 0:
                    child_rows.append({
                        'name': others_label(name, kind),
                        'value': rest_value,
                        'shipments': rest_shipments,
                        'percentage': rest_value / data['value'] * 100 if data['value'] > 0 else 0,
                    })

            rows.append({
                'parent': {
                    'name': name,
                    'totalValue': data['value'],
                    'totalShipments': data['shipments'],
                    'marketShare': data['value'] / total_value * 100 if total_value > 0 else 0,
                    child_label: len(data['children']),
                },
                'children': child_rows,
            })

        totals = {
            'totalValue': total_value,
            'totalShipments': total_shipments,
            'averageValue': total_value / total_shipments if total_shipments > 0 else 0,
            'count': len(parents),
        }
        return rows, totals

    @staticmethod
    def _nested_groups():
        return defaultdict(lambda: {
            'value': 0.0,
            'shipments': 0,
            'children': defaultdict(lambda: {'value': 0.0, 'shipments': 0}),
        })

    def _supplier_summary(self, records: List[Dict], limit: int) -> Dict:
        groups = self._nested_groups()
        for record in records:
            supplier = normalize_company_name(record.get('supplier_name') or 'Unknown Supplier')
            customer = normalize_company_name(record.get('buyer_name') or 'Unknown Customer')
            if is_placeholder_party(customer):
                customer = 'Unknown Customer'
            value = _value(record)
            groups[supplier]['value'] += value
            groups[supplier]['shipments'] += 1
            groups[supplier]['children'][customer]['value'] += value
            groups[supplier]['children'][customer]['shipments'] += 1

        rows, totals = self._breakdown(groups, limit, 'totalCustomers', 'supplier')
        return {
            'type': 'supplier-customer',
            'dateRange': ALL_DATA_RANGE,
            'topSuppliers': [{'supplier': row['parent'], 'customers': row['children']} for row in rows],
            'summary': {
                'totalValue': totals['totalValue'],
                'totalShipments': totals['totalShipments'],
                'averageValue': totals['averageValue'],
                'supplierCount': totals['count'],
            },
        }

    def _geographic_summary(self, records: List[Dict], limit: int) -> Dict:
        groups = self._nested_groups()
        for record in records:
            country = normalize_country_name(record.get('country_of_destination') or 'Unknown Country')
            if is_placeholder_party(country):
                country = 'Unknown Country'
            importer = normalize_company_name(record.get('buyer_name') or 'Unknown Importer')
            if is_placeholder_party(importer):
                importer = 'Unknown Importer'
            value = _value(record)
            groups[country]['value'] += value
            groups[country]['shipments'] += 1
            groups[country]['children'][importer]['value'] += value
            groups[country]['children'][importer]['shipments'] += 1

        rows, totals = self._breakdown(groups, limit, 'totalImporters', 'country')
        return {
            'type': 'geographic',
            'dateRange': ALL_DATA_RANGE,
            'topCountries': [{'country': row['parent'], 'importers': row['children']} for row in rows],
            'summary': {
                'totalValue': totals['totalValue'],
                'totalShipments': totals['totalShipments'],
                'averageValue': totals['averageValue'],
                'countryCount': totals['count'],
            },
        }

    # =========================================================================
    # PLATFORM ANALYTICS
    # =========================================================================

    def platform_analytics(self) -> Dict:
        """Dashboard totals and rankings over the whole table"""
        rows = self.repository.column_values([
            'supplier_name', 'buyer_name', 'product_description', 'chapter',
            'country_of_origin', 'country_of_destination', 'total_value_usd',
            'unit_rate_usd', 'shipping_bill_date', 'year',
        ])

        countries = set()
        for row in rows:
            for column in ('country_of_origin', 'country_of_destination'):
                if row.get(column):
                    countries.add(row[column])

        total_value = sum(_value(r) for r in rows)

        # Monthly trends: last 12 buckets, value in billions
        months = list(monthly_groups(rows).items())[-12:]
        market_trends = []
        previous_value = None
        for (year, month), data in months:
            market_trends.append({
                'month': MONTH_ABBREVIATIONS[month - 1],
                'value': data['value'] / 1e9,
                'volume': data['count'],
                'trend': 'down' if previous_value is not None and data['value'] < previous_value else 'up',
            })
            previous_value = data['value']

        products = defaultdict(list)
        for row in rows:
            if row.get('product_description'):
                products[row['product_description']].append(row)
        ranked_products = sorted(products.items(), key=lambda i: sum(_value(r) for r in i[1]), reverse=True)[:5]
        top_products = [
            {
                'name': name,
                'value': sum(_value(r) for r in items) / 1e9,
                'volume': len(items),
                'growth': _yearly_growth(items),
                'category': product_category(name),
            }
            for name, items in ranked_products
        ]

        imports = group_value_counts(rows, 'country_of_destination')
        exports = group_value_counts(rows, 'country_of_origin')
        import_total = sum(d['value'] for d in imports.values())
        top_countries = []
        for country, data in sorted(imports.items(), key=lambda i: i[1]['value'], reverse=True)[:5]:
            country_rows = [r for r in rows if r.get('country_of_destination') == country]
            prices = [p for p in (parse_number(r.get('unit_rate_usd')) for r in country_rows) if p > 0]
            top_countries.append({
                'country': country,
                'imports': data['value'] / 1e9,
                'exports': exports.get(country, {'value': 0.0})['value'] / 1e9,
                'growth': _yearly_growth(country_rows),
                'marketShare': data['value'] / import_total * 100 if import_total > 0 else 0.0,
                'tradePartners': len({r['buyer_name'] for r in country_rows if _named(r.get('buyer_name'))}),
                'avgPrice': stats.mean(prices),
            })

        suppliers = defaultdict(lambda: {'country': None, 'value': 0.0, 'count': 0, 'products': set()})
        for row in rows:
            if not _named(row.get('supplier_name')):
                continue
            entry = suppliers[row['supplier_name']]
            if entry['country'] is None:
                entry['country'] = row.get('country_of_origin') or 'Unknown'
            entry['value'] += _value(row)
            entry['count'] += 1
            if row.get('product_description'):
                entry['products'].add(row['product_description'])
        supply_chain = [
            {
                'supplier': name,
                'country': data['country'],
                'value': data['value'],
                'shipments': data['count'],
                'products': len(data['products']),
            }
            for name, data in sorted(suppliers.items(), key=lambda i: i[1]['value'], reverse=True)[:5]
        ]

        pricing = []
        for name, items in ranked_products:
            prices = [p for p in (parse_number(r.get('unit_rate_usd')) for r in items) if p > 0]
            pricing.append({
                'product': name,
                'currentPrice': stats.mean(prices),
                'minPrice': min(prices) if prices else 0.0,
                'maxPrice': max(prices) if prices else 0.0,
                'volatility': stats.volatility(prices),
            })

        flows = defaultdict(lambda: {'value': 0.0, 'count': 0})
        for row in rows:
            origin, destination = row.get('country_of_origin'), row.get('country_of_destination')
            if origin and destination:
                flows[(origin, destination)]['value'] += _value(row)
                flows[(origin, destination)]['count'] += 1
        trade_flows = [
            {
                'origin': origin,
                'destination': destination,
                'volume': data['count'],
                'value': data['value'] / 1e6,
                'route': f"{origin} → {destination}",
            }
            for (origin, destination), data in sorted(flows.items(), key=lambda i: i[1]['value'], reverse=True)[:5]
        ]

        chapters = group_value_counts(rows, 'chapter')
        chapter_total = sum(d['count'] for d in chapters.values())
        product_categories = [
            {
                'category': f"Chapter {chapter}",
                'count': data['count'],
                'value': data['value'] / 1e9,
                'marketShare': data['count'] / chapter_total * 100 if chapter_total else 0.0,
            }
            for chapter, data in sorted(chapters.items(), key=lambda i: i[1]['value'], reverse=True)[:8]
        ]

        logger.info(f"Platform analytics over {len(rows)} records")
        return {
            'analyticsData': {
                'totalRecords': len(rows),
                'countries': len(countries),
                'suppliers': len({r['supplier_name'] for r in rows if r.get('supplier_name')}),
                'buyers': len({r['buyer_name'] for r in rows if r.get('buyer_name')}),
                'totalValue': total_value / 1e9,
                'growthRate': _yearly_growth(rows),
            },
            'marketTrends': market_trends,
            'topProducts': top_products,
            'topCountries': top_countries,
            'supplyChainData': supply_chain,
            'pricingData': pricing,
            'tradeFlowData': trade_flows,
            'productCategories': product_categories,
        }

    # =========================================================================
    # HEALTH
    # =========================================================================

    def health(self) -> Tuple[Dict, bool]:
        """
        Database and cache connectivity

        Returns:
            Tuple of (payload, healthy)
        """
        timestamp = datetime.utcnow().isoformat() + 'Z'
        try:
            self.repository.ping()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                'status': 'unhealthy',
                'database': 'disconnected',
                'cache': 'connected' if self.cache.ping() else 'unavailable',
                'error': str(e),
                'timestamp': timestamp,
            }, False

        return {
            'status': 'healthy',
            'database': 'connected',
            'cache': 'connected' if self.cache.ping() else 'unavailable',
            'recordCount': self.repository.total_count(),
            'timestamp': timestamp,
        }, True
