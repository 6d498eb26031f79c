"""API v1 response envelope and request helpers."""
from datetime import datetime, timezone
from typing import Dict, Any

from flask import request, current_app

from crystalbudget.modules.budget.schemas import BudgetPayload


class APIResponse:
    """Standard API response format."""

    @staticmethod
    def success(data: Any = None, message: str = None) -> Dict:
        """Create success response."""
        response = {
            'success': True,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        if data is not None:
            response['data'] = data

        if message:
            response['message'] = message

        return response

    @staticmethod
    def error(message: str, code: str = None, details: Any = None) -> Dict:
        """Create error response."""
        response = {
            'success': False,
            'error': {
                'message': message,
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }

        if code:
            response['error']['code'] = code

        if details:
            response['error']['details'] = details

        return response


class RequestValidator:
    """Request data validation."""

    @staticmethod
    def json_body() -> Dict:
        """Parsed JSON object from the request, ValueError if missing."""
        data = request.get_json(silent=True)
        if not data or not isinstance(data, dict):
            raise ValueError('No data provided')
        return data

    @staticmethod
    def budget_payload() -> Dict:
        """Validated engine payload from the request body."""
        return BudgetPayload.validate(
            RequestValidator.json_body(),
            default_currency=current_app.config.get('DEFAULT_CURRENCY', 'RUB')
        )

    @staticmethod
    def wants_diagnostics() -> bool:
        return request.args.get('diagnostics', '').lower() in ('1', 'true', 'yes')

    @staticmethod
    def scope_to_month(payload: Dict, year_month=None) -> Dict:
        """Keep only transactions dated inside year_month (payload month by default).

        Without a month the payload is taken as already period-scoped.
        """
        year_month = year_month or payload['year_month']
        if year_month is None:
            return payload
        scoped = dict(payload)
        scoped['incomes'] = [i for i in payload['incomes'] if year_month.contains(i.date)]
        scoped['expenses'] = [e for e in payload['expenses'] if year_month.contains(e.date)]
        return scoped
