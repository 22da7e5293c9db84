"""
Main Flask application file for the SportBuzz Backend.

This file initializes the Flask app, configures logging, database, CORS,
the background scheduler for the daily analytics rollover, registers API
blueprints, and defines global error handlers and request/response logging.
"""
import os
import atexit
import logging
from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv
from apscheduler.schedulers.background import BackgroundScheduler

# --- Environment Variable Loading ---
# Done before local imports so every module sees the same environment.
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    print("Warning: .env file not found. Relying on environment variables being set directly.")


# --- Module Imports ---
from .analytics import Backfill, CounterStore
from .db import init_db, ensure_indexes, get_db
from .utils import error_response


# ---- Logging Setup ----
log_level_str = os.getenv('FLASK_LOG_LEVEL', 'INFO').upper()
log_level = getattr(logging, log_level_str, logging.INFO)

log_dir = os.getenv('LOG_DIR', 'logs')
os.makedirs(log_dir, exist_ok=True)

log_format = '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'
date_format = '%Y-%m-%d %H:%M:%S'

# Package-level logger: the analytics modules log through child loggers
# (sportbuzz_backend.analytics.*) and inherit these handlers.
package_logger = logging.getLogger('sportbuzz_backend')
package_logger.setLevel(log_level)
package_logger.propagate = False

if not package_logger.handlers:
    file_handler = logging.FileHandler(os.path.join(log_dir, 'sportbuzz_app.log'), mode='a')
    file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    package_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    package_logger.addHandler(stream_handler)

logger = package_logger


# ---- Flask App Initialization ----
app = Flask(__name__)
app.logger = logger
logger.info("Flask application initialized.")


# ---- Application Configuration ----
mongo_db_uri = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/sportbuzz')
app.config["MONGO_URI"] = mongo_db_uri
app.config["ADMIN_API_TOKEN"] = os.getenv('ADMIN_API_TOKEN')
app.config["TOP_ARTICLES_LIMIT"] = int(os.getenv('TOP_ARTICLES_LIMIT', '10'))
app.config["DAILY_VIEWS_WINDOW_DAYS"] = int(os.getenv('DAILY_VIEWS_WINDOW_DAYS', '30'))
app.config["BACKFILL_GAP_DAYS"] = int(os.getenv('BACKFILL_GAP_DAYS', '30'))
app.config["ANALYTICS_ROLLOVER_HOUR"] = int(os.getenv('ANALYTICS_ROLLOVER_HOUR', '0'))
logger.info(f"MongoDB URI set from environment (length: {len(mongo_db_uri)}).")
if not app.config["ADMIN_API_TOKEN"]:
    logger.warning("ADMIN_API_TOKEN not set. Admin endpoints will reject every request.")

is_testing = os.getenv('FLASK_ENV') == 'testing'


# ---- Database Initialization ----
try:
    init_db(app)
    if not is_testing:
        ensure_indexes(app)
    else:
        logger.info("Skipping MongoDB index creation in TESTING environment.")
except (ValueError, RuntimeError) as e:
    logger.error(f"Database initialization failed: {e}", exc_info=True)


# ---- CORS (Cross-Origin Resource Sharing) Setup ----
CORS(app, resources={r"/api/*": {"origins": os.getenv("CORS_ORIGINS", "*").split(",")}})
logger.info(f"Flask-CORS initialized for API routes. Allowed origins: {os.getenv('CORS_ORIGINS', '*')}")


# ---- APScheduler (Background Task Scheduler) Setup ----
scheduler = BackgroundScheduler(daemon=True, logger=logger)


def scheduled_rollover_job():
    """Creates today's analytics record and fills recent gaps, once a day."""
    with app.app_context():
        logger.info("APScheduler: Running daily analytics rollover.")
        try:
            backfill = Backfill(CounterStore(get_db()))
            result = backfill.rollover(gap_days=app.config["BACKFILL_GAP_DAYS"])
            logger.info(f"APScheduler: Rollover finished for {result['today']:%Y-%m-%d}, gaps filled: {result['gaps_filled']}")
        except Exception as e:
            logger.error(f"APScheduler: Unhandled error during analytics rollover: {e}", exc_info=True)


scheduler.add_job(
    id='analytics_rollover_job',
    func=scheduled_rollover_job,
    trigger='cron',
    hour=app.config["ANALYTICS_ROLLOVER_HOUR"],
    minute=0,
    replace_existing=True
)
logger.info(f"APScheduler: Analytics rollover scheduled daily at {app.config['ANALYTICS_ROLLOVER_HOUR']:02d}:00.")

if not is_testing:
    try:
        if not scheduler.running:
            scheduler.start()
            logger.info("APScheduler started successfully.")
    except Exception as e:
        logger.error(f"APScheduler: Failed to start: {e}", exc_info=True)
else:
    logger.info("APScheduler: Not starting scheduler in TESTING environment.")


# ---- Global Request Hooks ----
@app.before_request
def log_request_info():
    """Logs incoming request details before each request is processed."""
    if logger.isEnabledFor(logging.DEBUG):
        debug_message = f"Incoming Request: {request.method} {request.url} from {request.remote_addr}"
        if request.args:
            debug_message += f" Query Params: {request.args.to_dict()}"
        if request.is_json and request.content_length:
            json_body = request.get_json(silent=True)
            if json_body is None:
                debug_message += " JSON Body: (Could not parse or not valid JSON)"
            elif len(str(json_body)) < 1000:
                debug_message += f" JSON Body: {json_body}"
            else:
                debug_message += f" JSON Body: (Size: {request.content_length} bytes)"
        logger.debug(debug_message)
    else:
        logger.info(f"Incoming Request: {request.method} {request.url} from {request.remote_addr}")


@app.after_request
def log_response_info(response):
    """Logs outgoing response details after each request is processed."""
    logger.info(
        f"Outgoing Response: {request.method} {request.url} - Status: {response.status_code} ({response.content_length} bytes)"
    )
    return response


# ---- Global Error Handlers ----
# Errors are always returned in the same JSON shape.
@app.errorhandler(400)
def handle_bad_request_error(error):
    logger.warning(f"Bad Request (400): {getattr(error, 'description', 'Invalid request')}. URL: {request.url}")
    return error_response(
        getattr(error, 'description', 'The browser (or proxy) sent a request that this server could not understand.'),
        400
    )


@app.errorhandler(401)
def handle_unauthorized_error(error):
    logger.warning(f"Unauthorized (401): {getattr(error, 'description', 'Authentication required')}. URL: {request.url}")
    return error_response(getattr(error, 'description', 'Valid authentication is required to access this resource.'), 401)


@app.errorhandler(403)
def handle_forbidden_error(error):
    logger.warning(f"Forbidden (403): {getattr(error, 'description', 'Access denied')}. URL: {request.url}")
    return error_response(getattr(error, 'description', 'You do not have the permission to access the requested resource.'), 403)


@app.errorhandler(404)
def handle_not_found_error(error):
    logger.info(f"Not Found (404): Resource at {request.url} not found.")
    return error_response('Resource not found.', 404)


@app.errorhandler(405)
def handle_method_not_allowed_error(error):
    logger.warning(f"Method Not Allowed (405): Method '{request.method}' not supported for URL '{request.url}'.")
    return error_response(f"The method {request.method} is not allowed for the requested URL.", 405)


@app.errorhandler(Exception)
def handle_internal_server_error(error):
    """
    Handles any unhandled exceptions (resulting in 500 Internal Server Error)
    with a generic JSON error message and logs the full exception trace.
    """
    if hasattr(error, 'code') and isinstance(error.code, int) and error.code != 500:
        # Non-500 HTTPExceptions without a dedicated handler.
        return error_response(getattr(error, 'description', 'An HTTP exception occurred.'), error.code)

    logger.error(f"Unhandled Exception caught by global handler: {error}", exc_info=True)
    return error_response('An unexpected internal server error occurred. Please try again later.', 500)


# ---- Core API Endpoints ----
@app.route('/')
def index():
    """A simple root endpoint to confirm the app is running."""
    return jsonify({"message": "SportBuzz backend is running.", "status": "ok"})


@app.route('/api/scheduler/status', methods=['GET'])
def scheduler_status():
    if scheduler.running:
        jobs = []
        for job in scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "trigger": str(job.trigger),
                "next_run_time": str(job.next_run_time) if job.next_run_time else None
            })
        return jsonify({"status": "running", "jobs": jobs}), 200
    return jsonify({"status": "not_running"}), 200


# ---- Register Blueprints ----
from .routes.articles import articles_bp
from .routes.analytics import analytics_bp
from .routes.comments import comments_bp
from .routes.subscribers import subscribers_bp
from .routes.contacts import contacts_bp

app.register_blueprint(articles_bp, url_prefix='/api/articles')
app.register_blueprint(analytics_bp, url_prefix='/api/analytics')
app.register_blueprint(comments_bp, url_prefix='/api/comments')
app.register_blueprint(subscribers_bp, url_prefix='/api/subscribers')
app.register_blueprint(contacts_bp, url_prefix='/api/contacts')
logger.info("API Blueprints registered.")


atexit.register(lambda: scheduler.shutdown() if scheduler.running else None)

if __name__ == '__main__':
    is_debug = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'
    port = int(os.getenv('FLASK_PORT', 5001))
    logger.info(f"Starting Flask app in {'debug' if is_debug else 'production'} mode on port {port}")
    # The reloader would start a second scheduler in the child process.
    app.run(debug=is_debug, port=port, host='0.0.0.0', use_reloader=False)
