from flask import current_app


def test_app_creation(app):
    """Test if the Flask app instance is created and configured for testing."""
    assert app is not None
    assert current_app.config["TESTING"] is True
    assert current_app.config["DEBUG"] is False


def test_app_logger_is_correct(app):
    """The analytics modules log through children of this logger."""
    assert current_app.logger.name == 'sportbuzz_backend'


def test_blueprints_registered(app):
    assert {'articles_bp', 'analytics_bp', 'comments_bp', 'subscribers_bp', 'contacts_bp'} <= set(app.blueprints)


def test_root_endpoint(client):
    """Test the root endpoint '/'."""
    response = client.get('/')
    assert response.status_code == 200
    json_data = response.get_json()
    assert json_data["status"] == "ok"
    assert "SportBuzz backend is running" in json_data["message"]


def test_custom_error_handler_404(client):
    """Test the custom 404 error handler."""
    response = client.get('/non_existent_route_for_testing_404')
    assert response.status_code == 404
    json_data = response.get_json()
    assert json_data["status"] == "error"
    assert json_data["message"] == "Resource not found."


def test_custom_error_handler_405(client):
    response = client.delete('/')
    assert response.status_code == 405
    assert response.get_json()["status"] == "error"


def test_unhandled_exception_returns_generic_500(client, mocker):
    mocker.patch('sportbuzz_backend.routes.articles.get_db', side_effect=RuntimeError('boom'))
    response = client.get('/api/articles')
    assert response.status_code == 500
    assert response.get_json()["message"] == 'An unexpected internal server error occurred. Please try again later.'


def test_scheduler_not_running_in_tests(client):
    from sportbuzz_backend.app import scheduler

    response = client.get('/api/scheduler/status')
    assert response.status_code == 200
    assert response.get_json() == {"status": "not_running"}
    assert scheduler.get_job('analytics_rollover_job') is not None


def test_rollover_job_runs_against_database(app_db):
    from sportbuzz_backend.app import scheduled_rollover_job

    scheduled_rollover_job()
    # today plus the configured gap window
    assert app_db.analytics.count_documents({}) == current_app.config["BACKFILL_GAP_DAYS"] + 1


def test_cors_headers_api(client):
    """Test if CORS headers are present for API routes."""
    response = client.get('/api/scheduler/status', headers={'Origin': 'http://example.com'})
    assert response.status_code == 200
    assert 'Access-Control-Allow-Origin' in response.headers
