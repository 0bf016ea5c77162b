"""API tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from attrition.main import app, results_cache


client = TestClient(app)

CSV_TEXT = (
    'Name,Department,YearsAtCompany,JobSatisfaction,MonthlyIncome,OverTime,WorkLifeBalance\n'
    'Sarah Johnson,Sales,1,1,3000,Yes,1\n'
    'Michael Chen,Engineering,6,4,6000,No,3\n'
    'Emily Davis,HR,3,3,5000,No,3\n'
)


@pytest.fixture(autouse=True)
def clear_session():
    results_cache.clear()
    yield
    results_cache.clear()


def upload(text, filename='employees.csv'):
    return client.post('/upload', files={'file': (filename, text.encode('utf-8'), 'text/csv')})


def test_root_page():
    """Test the landing page."""
    response = client.get('/')
    assert response.status_code == 200
    assert 'Employee Attrition Analyzer' in response.text


def test_health():
    """Test health endpoint."""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json()['status'] == 'ok'


def test_predict_manual_entry():
    """Test scoring of one form submission."""
    response = client.post('/predict', json={
        'name': 'Jordan',
        'age': 28,
        'department': 'Sales',
        'job_role': 'Sales Executive',
        'years_at_company': 1,
        'monthly_income': 3000,
        'job_satisfaction': 1,
        'work_life_balance': 1,
        'overtime': True,
        'distance_from_home': 12,
        'num_companies_worked': 4,
    })

    assert response.status_code == 200
    body = response.json()
    assert body['risk_score'] == 95
    assert body['will_leave'] == True
    assert body['employee_name'] == 'Jordan'
    assert body['risk_tier'] == 'High Risk'
    assert len(body['reasons']) == 5
    assert body['chart_data'][0] == {'label': 'Overtime Required', 'impact': 28, 'direction': 'increases_risk'}


def test_predict_rejects_out_of_range():
    """Test form range checks."""
    response = client.post('/predict', json={'age': 70})
    assert response.status_code == 422

    response = client.post('/predict', json={'job_satisfaction': 5})
    assert response.status_code == 422


def test_upload_and_select():
    """Test bulk upload, then redisplay of one stored row."""
    response = upload(CSV_TEXT)

    assert response.status_code == 200
    body = response.json()
    assert body['total_rows'] == 3
    assert body['processed_rows'] == 3
    assert [r['employee_id'] for r in body['results']] == ['EMP001', 'EMP002', 'EMP003']
    assert [r['risk_score'] for r in body['results']] == [95, 5, 30]
    assert body['summary'] == {
        'High Risk': 1, 'Medium Risk': 0, 'Low Risk': 2, 'Total': 3, 'Will Leave': 1,
    }

    selected = client.get('/results/EMP001')
    assert selected.status_code == 200
    assert selected.json() == body['results'][0]['prediction']

    assert client.get('/results/EMP999').status_code == 404


def test_upload_truncates_at_fifty_rows():
    """Test the row cap is reported."""
    text = 'Name\n' + '\n'.join(f'Person {i}' for i in range(80))

    body = upload(text).json()

    assert body['total_rows'] == 80
    assert body['processed_rows'] == 50
    assert len(body['results']) == 50
    assert '50 of 80' in body['message']


def test_upload_header_only():
    """Test that a header-only file is a parse error."""
    response = upload('Name,Department\n')

    assert response.status_code == 400
    assert 'No valid employee data' in response.json()['detail']


def test_upload_unreadable_clears_session():
    """Test that an unreadable file resets the stored upload."""
    upload(CSV_TEXT)
    assert client.get('/results').status_code == 200

    response = client.post('/upload', files={'file': ('bad.csv', b'\xff\xfe\xfa', 'text/csv')})

    assert response.status_code == 400
    assert client.get('/results').status_code == 404


def test_upload_rejects_non_csv():
    """Test file type check."""
    response = upload(CSV_TEXT, filename='employees.xlsx')
    assert response.status_code == 400


def test_results_download_and_clear():
    """Test results listing, CSV export and clearing."""
    assert client.get('/results').status_code == 404
    assert client.get('/download.csv').status_code == 404

    upload(CSV_TEXT)

    results = client.get('/results').json()
    assert results['summary']['Total'] == 3

    download = client.get('/download.csv')
    assert download.status_code == 200
    lines = download.text.strip().splitlines()
    assert lines[0] == 'Employee ID,Name,Department,Risk Score,Risk Tier,Prediction'
    assert lines[1] == 'EMP001,Sarah Johnson,Sales,95,High Risk,Likely to Leave'

    assert client.delete('/results').status_code == 200
    assert client.get('/results').status_code == 404


def test_upload_without_data_clears_session():
    """Test that a failed parse does not leave older results behind."""
    upload(CSV_TEXT)
    assert client.get('/results').status_code == 200

    response = upload('Name,Department\n')

    assert response.status_code == 400
    assert client.get('/results').status_code == 404
    assert client.get('/results/EMP001').status_code == 404
