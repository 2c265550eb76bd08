"""
Tests for the Flask API

Run with:
    pytest tests/test_api.py -v
"""

import pytest


class TestSearchEndpoints:
    """Tests for health, search and summary routes"""

    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.get_json()['database'] == 'connected'
        assert response.get_json()['cache'] == 'connected'

    def test_search_requires_query(self, client):
        response = client.get('/api/search')

        assert response.status_code == 400
        assert response.get_json() == {'error': "Query parameter 'q' is required."}

    def test_search_cache_header(self, client):
        first = client.get('/api/search?q=paracetamol')
        second = client.get('/api/search?q=paracetamol')

        assert first.status_code == 200
        assert first.headers['X-Cache'] == 'MISS'
        assert second.headers['X-Cache'] == 'HIT'
        assert second.get_json()['aggregates']['totalRecords'] == 6

    def test_search_filters(self, client):
        data = client.get('/api/search?q=paracetamol&importCountry=Germany').get_json()
        assert len(data['results']) == 1

    def test_search_analytics(self, client):
        data = client.get('/api/search/analytics?q=paracetamol').get_json()
        assert data['aggregates']['dateRange']['start'] == 'November 2023'

    def test_quick_search(self, client):
        data = client.get('/api/search/quick-search?q=metformin').get_json()
        assert data['pagination']['total'] == 1

    def test_trade_records(self, client):
        response = client.get('/api/quicksummary/trade-records?q=paracetamol&limit=2')
        data = response.get_json()

        assert response.headers['X-Cache'] == 'MISS'
        assert [r['id'] for r in data['records']] == ['record-1', 'record-2']

    def test_supplier_customer_summary(self, client):
        data = client.get('/api/quicksummary/supplier-customer-summary?q=paracetamol&type=geographic').get_json()

        assert data['type'] == 'geographic'
        assert data['performance']['recordCount'] == 6

    def test_platform_analytics(self, client):
        data = client.get('/api/analytics').get_json()
        assert data['analyticsData']['totalRecords'] == 7


class TestAnalyticsEndpoints:
    """Tests for AI, advanced and chart analytics routes"""

    def test_ai_analytics_requires_query(self, client):
        response = client.get('/api/ai-analytics')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Query parameter "q" is required'

    def test_ai_analytics(self, client):
        data = client.get('/api/ai-analytics?q=paracetamol').get_json()

        assert data['marketIntelligence']['supplierDiversity'] == 3
        assert data['predictions']

    def test_ai_analytics_no_match(self, client):
        data = client.get('/api/ai-analytics?q=unobtainium').get_json()
        assert data['predictions'] == []

    def test_advanced_analytics(self, client):
        data = client.get('/api/advanced-analytics?q=paracetamol').get_json()

        assert data['success'] is True
        assert data['metrics']['totalValue'] == pytest.approx(58000)

    def test_advanced_analytics_no_data(self, client):
        response = client.get('/api/advanced-analytics?q=unobtainium')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'No data found for the specified search term'

    def test_chart_ai_info(self, client):
        assert client.get('/api/chart-ai').get_json()['message'] == 'Chart AI Analysis API'

    def test_chart_ai(self, client):
        response = client.post('/api/chart-ai', json={
            'chartType': 'line',
            'title': 'Monthly value',
            'data': [{'value': 10}, {'value': 12}, {'value': 20}, {'value': 25}],
            'query': 'what is the trend?',
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data['insights'][0]['title'] == 'Increasing Trend Detected'
        assert data['aiResponse'] == data['insights'][0]['description']

    def test_chart_ai_invalid_data(self, client):
        response = client.post('/api/chart-ai', json={'chartType': 'bar', 'data': []})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid chart data provided'

    def test_chart_ai_bare_numbers(self, client):
        response = client.post('/api/chart-ai', json={'chartType': 'bar', 'data': [1, 2, 3]})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid chart data provided'


class TestReportEndpoints:
    """Tests for report generation, download and view routes"""

    def test_dynamic_report_info(self, client):
        assert client.get('/api/dynamic-report-generator').get_json()['version'] == '2.0.0'

    def test_dynamic_report_requires_fields(self, client):
        response = client.post('/api/dynamic-report-generator', json={'searchTerm': 'paracetamol'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Search term, report type, and format are required'

    def test_dynamic_report_html(self, client):
        response = client.post('/api/dynamic-report-generator', json={
            'searchTerm': 'paracetamol',
            'reportType': 'market-analysis',
            'format': 'html',
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data['format'] == 'html'
        assert len(data['report']['sections']) == 5

    def test_dynamic_report_unknown_type(self, client):
        response = client.post('/api/dynamic-report-generator', json={
            'searchTerm': 'paracetamol',
            'reportType': 'quarterly',
            'format': 'pdf',
        })
        assert response.status_code == 400

    def test_dynamic_report_invalid_settings(self, client):
        response = client.post('/api/dynamic-report-generator', json={
            'searchTerm': 'paracetamol',
            'reportType': 'market-analysis',
            'format': 'html',
            'aiSettings': {'confidenceThreshold': 'high'},
        })

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid value for confidenceThreshold'

    def test_dynamic_report_download_and_view(self, client):
        data = client.post('/api/dynamic-report-generator', json={
            'searchTerm': 'paracetamol',
            'reportType': 'market-analysis',
            'format': 'pdf',
        }).get_json()

        download = client.get(data['downloadUrl'])
        assert download.status_code == 200
        assert download.headers['Content-Type'] == 'application/pdf'
        assert data['fileName'] in download.headers['Content-Disposition']
        assert download.data.startswith(b'%PDF')

        view = client.get(f"/api/view-report/{data['reportId']}").get_json()
        assert view['success'] is True
        assert view['metadata']['searchTerm'] == 'paracetamol'

    def test_view_missing_report(self, client):
        response = client.get('/api/view-report/report_missing')

        assert response.status_code == 404
        assert response.get_json()['error'] == 'Report not found or expired'

    def test_view_invalid_id(self, client):
        response = client.get('/api/view-report/a..b')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid file ID'

    def test_advanced_report_unsupported_format(self, client):
        response = client.post('/api/advanced-report-generator', json={
            'searchTerm': 'paracetamol',
            'format': 'html',
        })

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Unsupported format'

    def test_advanced_report_download(self, client):
        data = client.post('/api/advanced-report-generator', json={
            'searchTerm': 'paracetamol',
            'format': 'pptx',
        }).get_json()

        assert data['success'] is True
        download = client.get(data['downloadUrl'])
        assert download.status_code == 200
        assert download.headers['Content-Type'].startswith('application/vnd.openxmlformats')
