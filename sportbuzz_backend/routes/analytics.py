# -*- coding: utf-8 -*-
"""
API Endpoints for Site Analytics (admin only).

Each endpoint maps onto one analytics-core query: the dashboard overview,
per-period view series, the article performance table, demo seeding and gap
backfill.
"""
from datetime import datetime, timedelta

from flask import Blueprint, current_app, request

from ..analytics import AnalyticsAggregator, Backfill, CounterStore, TransientStoreError
from ..analytics.models import ViewPeriod
from ..db import get_db
from ..utils import error_response, make_json_response, require_admin

analytics_bp = Blueprint('analytics_bp', __name__)

MAX_SEED_DAYS = 366


def _aggregator():
    return AnalyticsAggregator(
        get_db(),
        top_articles_limit=current_app.config.get('TOP_ARTICLES_LIMIT', 10),
        daily_window_days=current_app.config.get('DAILY_VIEWS_WINDOW_DAYS', 30),
    )


def _backfill():
    return Backfill(CounterStore(get_db()))


def _parse_day(value):
    return datetime.strptime(value, '%Y-%m-%d')


@analytics_bp.route('/overview', methods=['GET'])
@require_admin
def get_overview():
    """
    Dashboard overview.

    Returns:
        JSON response: ``{"analytics": {today, week, month, topArticles,
        categoryStats, dailyViews, totals}}``. Sections whose enrichment query
        fails are returned empty; a failing counter read returns 500.
    """
    current_app.logger.info("API: GET /analytics/overview called.")
    try:
        overview = _aggregator().overview()
    except TransientStoreError as e:
        current_app.logger.error(f"Error fetching analytics overview: {e}", exc_info=True)
        return error_response("Failed to fetch analytics.", 500)
    return make_json_response({'analytics': overview})


@analytics_bp.route('/views/<string:period>', methods=['GET'])
@require_admin
def get_views_for_period(period):
    """Per-day totals for the 'daily' (30d), 'weekly' (90d) or 'monthly' (365d) window."""
    try:
        data = _aggregator().views_for_period(period)
    except TransientStoreError as e:
        current_app.logger.error(f"Error fetching view analytics for {period}: {e}", exc_info=True)
        return error_response("Failed to fetch view analytics.", 500)
    return make_json_response({'period': ViewPeriod.parse(period).value, 'data': data})


@analytics_bp.route('/articles/performance', methods=['GET'])
@require_admin
def get_article_performance():
    """
    Query Parameters:
        limit (int, optional): Number of articles. Default: 20. Max: 100.
        period (str, optional): 'week', 'month', 'year' or 'all'. Default: 'all'.
    """
    try:
        articles = _aggregator().article_performance(
            limit=request.args.get('limit', 20),
            period=request.args.get('period', 'all')
        )
    except TransientStoreError as e:
        current_app.logger.error(f"Error fetching article performance: {e}", exc_info=True)
        return error_response("Failed to fetch article performance.", 500)
    return make_json_response({'articles': articles})


@analytics_bp.route('/create-test-data', methods=['POST'])
@require_admin
def create_test_data():
    """Seed demo counters for the last N days (default 30), overwriting existing ones."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)
    try:
        days = int(data.get('days', 30))
    except (TypeError, ValueError):
        return error_response("Field 'days' must be an integer.", 400)
    if not 1 <= days <= MAX_SEED_DAYS:
        return error_response(f"Field 'days' must be between 1 and {MAX_SEED_DAYS}.", 400)

    try:
        records = _backfill().seed_range(datetime.now(), days)
    except TransientStoreError as e:
        current_app.logger.error(f"Error creating test analytics data: {e}", exc_info=True)
        return error_response("Failed to create test data.", 500)

    current_app.logger.info(f"Test analytics data created for {len(records)} days.")
    return make_json_response({'message': 'Test analytics data created successfully.', 'days': len(records)})


@analytics_bp.route('/backfill', methods=['POST'])
@require_admin
def backfill_gaps():
    """
    Insert zeroed records for missing days; existing days are left untouched.

    JSON body: ``{"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}`` (end defaults to
    today) or ``{"days": N}`` for the last N days.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Invalid JSON data in request body.", 400)
    now = datetime.now()
    try:
        if 'start' in data:
            start = _parse_day(data['start'])
            end = _parse_day(data['end']) if data.get('end') else now
        else:
            days = int(data.get('days', current_app.config.get('BACKFILL_GAP_DAYS', 30)))
            if not 1 <= days <= MAX_SEED_DAYS:
                return error_response(f"Field 'days' must be between 1 and {MAX_SEED_DAYS}.", 400)
            start, end = now - timedelta(days=days - 1), now
    except (TypeError, ValueError):
        return error_response("Invalid backfill range. Use 'start'/'end' as YYYY-MM-DD or an integer 'days'.", 400)

    if start > end:
        return error_response("'start' must not be after 'end'.", 400)
    if (end - start).days >= MAX_SEED_DAYS:
        return error_response(f"Backfill range cannot exceed {MAX_SEED_DAYS} days.", 400)

    try:
        created = _backfill().fill_gaps(start, end)
    except TransientStoreError as e:
        current_app.logger.error(f"Error backfilling analytics: {e}", exc_info=True)
        return error_response("Failed to backfill analytics.", 500)

    return make_json_response({
        'message': 'Backfill completed.',
        'start': start.date().isoformat(),
        'end': end.date().isoformat(),
        'created': created,
    })
