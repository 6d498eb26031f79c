"""Allocation helper endpoints used by the category and settings forms."""
from flask import current_app, jsonify

from crystalbudget.core.config import EngineSettings
from crystalbudget.core.money import CURRENCY_SYMBOLS
from crystalbudget.modules.budget import (
    distribute_with_rounding, normalize_percentages, validate_percentage_sum,
)
from crystalbudget.modules.budget.schemas import PercentageEntryData, RoundingSchema, ShareData
from .schemas import APIResponse, RequestValidator
from . import api_v1_bp


@api_v1_bp.route('/allocations/distribute', methods=['POST'])
def distribute():
    """Split a total across weighted shares (largest remainder)."""
    try:
        data = RequestValidator.json_body()
        shares = ShareData.validate_list(data.get('shares'))
        settings = EngineSettings.from_config(current_app.config)
        result = distribute_with_rounding(shares, data.get('total'), tolerance=settings.rounding_tolerance)
        return jsonify(APIResponse.success({'shares': RoundingSchema.serialize_shares(result)}))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400


@api_v1_bp.route('/allocations/percentages/validate', methods=['POST'])
def validate_percentages():
    try:
        data = RequestValidator.json_body()
        percentages = data.get('percentages')
        if not isinstance(percentages, list):
            raise ValueError('percentages must be a list')
        settings = EngineSettings.from_config(current_app.config)
        check = validate_percentage_sum(percentages, low_utilization_percent=settings.low_utilization_percent)
        return jsonify(APIResponse.success(RoundingSchema.serialize_check(check)))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400


@api_v1_bp.route('/allocations/percentages/normalize', methods=['POST'])
def normalize():
    try:
        data = RequestValidator.json_body()
        entries = normalize_percentages(PercentageEntryData.validate_list(data.get('entries')))
        return jsonify(APIResponse.success({'entries': RoundingSchema.serialize_entries(entries)}))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400


@api_v1_bp.route('/currencies')
def currencies():
    """Known display currencies and their symbols."""
    return jsonify(APIResponse.success({
        'default': current_app.config.get('DEFAULT_CURRENCY', 'RUB'),
        'currencies': [{'code': code, 'symbol': symbol} for code, symbol in CURRENCY_SYMBOLS.items()]
    }))
