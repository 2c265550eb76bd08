"""
Shared fixtures: an in-memory shipment table with a small paracetamol
market (plus one metformin shipment) and a Flask app bound to it.
"""

import pytest

from transdata_nexus.api import create_app
from transdata_nexus.config.settings import TransDataConfig, CacheType
from transdata_nexus.database.models import TradeRecord, init_database
from transdata_nexus.database.repository import TradeRecordRepository


PARACETAMOL = {
    'product_description': 'Paracetamol 500mg tablets',
    'hs_code': '30049099',
    'chapter': '30',
    'country_of_origin': 'India',
    'port_of_origin': 'Nhava Sheva',
    'uqc': 'KGS',
}

SAMPLE_ROWS = [
    dict(PARACETAMOL, supplier_name='Acme Pharma Pvt Ltd', buyer_name='Global Health Inc',
         country_of_destination='United States', mode='SEA', quantity='1000', unit_rate_usd='10',
         total_value_usd='10000', shipping_bill_date='2024-01-15', year='2024', month='1'),
    dict(PARACETAMOL, supplier_name='Acme Pharma Pvt Ltd', buyer_name='Medico LLC',
         country_of_destination='United Kingdom', mode='AIR', quantity='1000', unit_rate_usd='12',
         total_value_usd='12,000', shipping_bill_date='2024-02-10', year='2024', month='2'),
    dict(PARACETAMOL, supplier_name='Beta Labs', buyer_name='Global Health Inc',
         country_of_destination='United States', mode='SEA', quantity='800', unit_rate_usd='10',
         total_value_usd='8000', shipping_bill_date='15/03/2024', year='2024', month='3'),
    dict(PARACETAMOL, supplier_name='Beta Labs', buyer_name='Pharma Direct GmbH',
         country_of_destination='Germany', mode='SEA', quantity='500', unit_rate_usd='10',
         total_value_usd='5000', shipping_bill_date='2023-11-20', year='2023', month='11'),
    dict(PARACETAMOL, supplier_name='Gamma Drugs', buyer_name='TO ORDER',
         country_of_destination='Nigeria', mode='SEA', quantity='300', unit_rate_usd='10',
         total_value_usd='3000', shipping_bill_date='2023-12-05', year='2023', month='12'),
    dict(PARACETAMOL, supplier_name='Acme Pharma Pvt Ltd', buyer_name='Global Health Inc',
         country_of_destination='United States', mode='AIR', quantity='1000', unit_rate_usd='20',
         total_value_usd='20000', shipping_bill_date='Not Released', year='2023', month='10'),
    {
        'product_description': 'Metformin hydrochloride 500mg',
        'hs_code': '30042019',
        'chapter': '30',
        'country_of_origin': 'India',
        'supplier_name': 'Delta Chem',
        'buyer_name': 'Sugar Care',
        'country_of_destination': 'Kenya',
        'mode': 'SEA',
        'quantity': '400',
        'unit_rate_usd': '10',
        'total_value_usd': '4000',
        'shipping_bill_date': '2024-03-01',
        'year': '2024',
        'month': '3',
    },
]


@pytest.fixture
def paracetamol_records():
    """The paracetamol rows as plain dictionaries, as the repository returns them"""
    return [
        dict({name: None for name in TradeRecord.FIELDS}, id=index, **row)
        for index, row in enumerate(SAMPLE_ROWS[:6], start=1)
    ]


@pytest.fixture
def session_factory():
    factory, engine = init_database('sqlite:///:memory:')
    session = factory()
    session.add_all([TradeRecord(**row) for row in SAMPLE_ROWS])
    session.commit()
    session.close()
    yield factory
    engine.dispose()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repository(session):
    return TradeRecordRepository(session)


@pytest.fixture
def config(tmp_path):
    config = TransDataConfig()
    config.cache.cache_type = CacheType.SIMPLE
    config.reports.reports_directory = tmp_path / 'reports'
    return config


@pytest.fixture
def app(config, session_factory):
    app = create_app(config, session_factory=session_factory)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
