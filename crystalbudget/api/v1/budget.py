"""Budget API endpoints.

Stateless: every request carries the data to aggregate, nothing is stored.
"""
from flask import current_app, jsonify

from crystalbudget.core.config import EngineSettings
from crystalbudget.core.events import Diagnostics
from crystalbudget.core.time import YearMonth
from crystalbudget.modules.budget import (
    compute_category_budgets, compute_rollovers, compute_source_summaries, validate_budget_consistency,
)
from crystalbudget.modules.budget.schemas import (
    CategoryBudgetSchema, MonthSnapshotSchema, RolloverSchema, SourceSummarySchema, ValidationResultSchema,
)
from crystalbudget.modules.budget.service import BudgetService, InMemoryBudgetRepository
from .schemas import APIResponse, RequestValidator
from . import api_v1_bp


def _diagnostics():
    return Diagnostics() if RequestValidator.wants_diagnostics() else None


@api_v1_bp.route('/budget/snapshot', methods=['POST'])
def budget_snapshot():
    """Full month snapshot: rollovers from the prior month, budgets, sources."""
    try:
        payload = RequestValidator.budget_payload()
        year_month = payload['year_month'] or YearMonth.current()
        repository = InMemoryBudgetRepository(
            income_sources=payload['income_sources'],
            categories=payload['categories'],
            incomes=payload['incomes'],
            expenses=payload['expenses'],
            user_currency=payload['user_currency'],
        )
        service = BudgetService(repository, EngineSettings.from_config(current_app.config))
        snapshot = service.calculate_month_snapshot(year_month, diagnostics=_diagnostics())
        return jsonify(APIResponse.success(MonthSnapshotSchema.serialize(snapshot)))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating budget snapshot: {e}")
        return jsonify(APIResponse.error("Failed to calculate budget snapshot")), 500


@api_v1_bp.route('/budget/categories', methods=['POST'])
def category_budgets():
    """Category budgets for period-scoped transactions and given rollover maps."""
    try:
        payload = RequestValidator.budget_payload()
        payload = RequestValidator.scope_to_month(payload)
        diagnostics = _diagnostics()
        budgets = compute_category_budgets(
            payload['categories'], payload['incomes'], payload['expenses'], payload['income_sources'],
            debt_map=payload['debt_map'],
            carry_over_map=payload['carry_over_map'],
            user_currency=payload['user_currency'],
            diagnostics=diagnostics,
        )
        data = {'categories': CategoryBudgetSchema.serialize_list(budgets)}
        if diagnostics is not None:
            data['diagnostics'] = diagnostics.to_list()
        return jsonify(APIResponse.success(data))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating category budgets: {e}")
        return jsonify(APIResponse.error("Failed to calculate category budgets")), 500


@api_v1_bp.route('/budget/sources', methods=['POST'])
def source_summaries():
    """Income source summaries for period-scoped transactions."""
    try:
        payload = RequestValidator.budget_payload()
        payload = RequestValidator.scope_to_month(payload)
        summaries = compute_source_summaries(
            payload['income_sources'], payload['incomes'], payload['expenses'], payload['categories'],
            user_currency=payload['user_currency'],
        )
        return jsonify(APIResponse.success({'sources': SourceSummarySchema.serialize_list(summaries)}))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating source summaries: {e}")
        return jsonify(APIResponse.error("Failed to calculate source summaries")), 500


@api_v1_bp.route('/budget/rollovers', methods=['POST'])
def rollovers():
    """Debt and carry-over maps; the payload holds the prior period's transactions."""
    try:
        payload = RequestValidator.budget_payload()
        if payload['year_month'] is not None:
            payload = RequestValidator.scope_to_month(payload, payload['year_month'].prev_month())
        result = compute_rollovers(
            payload['categories'], payload['incomes'], payload['expenses'], payload['income_sources'],
            user_currency=payload['user_currency'],
        )
        return jsonify(APIResponse.success(RolloverSchema.serialize(result)))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400
    except Exception as e:
        current_app.logger.error(f"Error calculating rollovers: {e}")
        return jsonify(APIResponse.error("Failed to calculate rollovers")), 500


@api_v1_bp.route('/budget/validate', methods=['POST'])
def validate_budget():
    """Pre-save consistency check of allocations against income."""
    try:
        payload = RequestValidator.budget_payload()
        payload = RequestValidator.scope_to_month(payload)
        diagnostics = _diagnostics()
        result = validate_budget_consistency(
            payload['categories'], payload['income_sources'], payload['incomes'],
            user_currency=payload['user_currency'],
            settings=EngineSettings.from_config(current_app.config),
            diagnostics=diagnostics,
        )
        data = ValidationResultSchema.serialize(result)
        if diagnostics is not None:
            data['diagnostics'] = diagnostics.to_list()
        return jsonify(APIResponse.success(data))
    except ValueError as e:
        return jsonify(APIResponse.error(str(e), code='invalid_payload')), 400
    except Exception as e:
        current_app.logger.error(f"Error validating budget: {e}")
        return jsonify(APIResponse.error("Failed to validate budget")), 500
