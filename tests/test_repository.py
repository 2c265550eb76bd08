"""
Tests for the shipment repository and CSV loader

Run with:
    pytest tests/test_repository.py -v
"""

import pytest

from transdata_nexus.database.loader import load_trade_records_csv
from transdata_nexus.database.models import TradeRecord
from transdata_nexus.database.repository import PARTY_SEARCH_FIELDS, PRODUCT_SEARCH_FIELDS, escape_like


class TestSearch:
    """Tests for substring search and filters"""

    def test_case_insensitive(self, repository):
        assert len(repository.search('PARACETAMOL')) == 6

    def test_party_fields(self, repository):
        records = repository.search('beta labs', PARTY_SEARCH_FIELDS)
        assert [r['buyer_name'] for r in records] == ['Global Health Inc', 'Pharma Direct GmbH']

    def test_product_fields_skip_parties(self, repository):
        assert repository.search('beta labs', PRODUCT_SEARCH_FIELDS) == []

    def test_filters_by_parameter_and_column(self, repository):
        by_param = repository.search('paracetamol', filters={'exporter': 'Gamma Drugs'})
        by_column = repository.search('paracetamol', filters={'supplier_name': 'Gamma Drugs'})

        assert [r['id'] for r in by_param] == [r['id'] for r in by_column] == [5]

    def test_blank_filters_ignored(self, repository):
        assert len(repository.search('paracetamol', filters={'importer': '', 'exporter': None})) == 6

    def test_wildcards_match_literally(self, repository):
        assert repository.search('para_etamol') == []
        assert repository.search('100%') == []
        assert repository.search('%') == []
        assert repository.count('para_etamol') == 0

    def test_escape_like(self):
        assert escape_like('50%_off\\') == '50\\%\\_off\\\\'
        assert escape_like('paracetamol') == 'paracetamol'

    def test_unknown_filter(self, repository):
        with pytest.raises(ValueError):
            repository.search('paracetamol', filters={'colour': 'red'})

    def test_limit_offset(self, repository):
        records = repository.search('paracetamol', limit=2, offset=1)
        assert [r['id'] for r in records] == [2, 3]

    def test_newest_first(self, repository):
        years = [r['year'] for r in repository.search('paracetamol', newest_first=True)]
        assert years == ['2024', '2024', '2024', '2023', '2023', '2023']


class TestAggregates:
    """Tests for counts and column scans"""

    def test_count(self, repository):
        assert repository.count('paracetamol') == 6
        assert repository.count('paracetamol', filters={'import_country': 'United States'}) == 3

    def test_top_counts(self, repository):
        top = repository.top_counts('paracetamol', 'country_of_destination', limit=2)
        # Ties are broken alphabetically
        assert top == [('United States', 3), ('Germany', 1)]

    def test_column_values(self, repository):
        rows = repository.column_values(['supplier_name', 'year'])

        assert len(rows) == 7
        assert rows[0] == {'supplier_name': 'Acme Pharma Pvt Ltd', 'year': '2024'}

    def test_total_count_and_ping(self, repository):
        assert repository.total_count() == 7
        assert repository.ping() is True


class TestCsvLoader:
    """Tests for bulk CSV import"""

    def test_load(self, session, tmp_path):
        csv_path = tmp_path / 'shipments.csv'
        csv_path.write_text(
            'Product Description,HS Code,Supplier Name,Total Value USD,Remarks\n'
            'Ibuprofen 400mg,30049099,Omega Pharma,"1,500",fragile\n'
            'Ibuprofen 200mg,30049099,,900,\n'
        )

        result = load_trade_records_csv(session, csv_path)

        assert result.success is True
        assert result.records_read == 2
        assert result.records_inserted == 2
        assert result.columns_ignored == 1

        rows = session.query(TradeRecord).filter(TradeRecord.product_description.like('Ibuprofen%')).all()
        assert sorted(r.total_value_usd for r in rows) == ['1,500', '900']
        assert {r.supplier_name for r in rows} == {'Omega Pharma', None}

    def test_missing_file(self, session, tmp_path):
        result = load_trade_records_csv(session, tmp_path / 'missing.csv')

        assert result.success is False
        assert result.error_message

    def test_failed_commit_rolls_back(self, session, tmp_path, monkeypatch):
        csv_path = tmp_path / 'shipments.csv'
        csv_path.write_text('Product Description,HS Code\nIbuprofen 400mg,30049099\n')

        def fail_commit():
            raise RuntimeError('disk full')

        monkeypatch.setattr(session, 'commit', fail_commit)
        result = load_trade_records_csv(session, csv_path)

        assert result.success is False
        assert result.records_read == 1
        assert result.records_inserted == 0
        assert 'disk full' in result.error_message
        assert session.query(TradeRecord).filter(TradeRecord.product_description.like('Ibuprofen%')).count() == 0
