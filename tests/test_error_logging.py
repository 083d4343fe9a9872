"""Unhandled exceptions are logged and answered with a 500"""
import pytest
from flask import Flask

from error_logger import init_error_logging


@pytest.fixture
def failing_app(mongo_client, monkeypatch, tmp_path):
    monkeypatch.setenv('ERROR_LOG_FILE', str(tmp_path / 'errors.log'))
    flask_app = Flask('failing')
    init_error_logging(flask_app)

    @flask_app.route('/boom', methods=['GET', 'POST'])
    def boom():
        raise RuntimeError('kaboom')

    @flask_app.route('/api/boom')
    def api_boom():
        raise RuntimeError('kaboom')

    return flask_app


def test_html_error_page_and_mongo_record(failing_app, db):
    response = failing_app.test_client().post('/boom', data={'username': 'keeper', 'password': 'secret'})
    assert response.status_code == 500
    assert 'Internal Server Error' in response.get_data(as_text=True)

    logged = list(db['error_logs'].find())
    assert len(logged) == 1
    assert logged[0]['path'] == '/boom'
    assert logged[0]['form'] == {'username': 'keeper'}
    assert 'RuntimeError' in ''.join(logged[0]['traceback'])


def test_api_errors_are_json(failing_app):
    client = failing_app.test_client()
    response = client.get('/api/boom')
    assert response.status_code == 500
    assert response.get_json()['error'] == 'Internal Server Error'

    missing = client.get('/api/nothing-here')
    assert missing.status_code == 404
    assert missing.get_json() == {'error': 'Not Found'}
    assert client.get('/nothing-here').status_code == 404
