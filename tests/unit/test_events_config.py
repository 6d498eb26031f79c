"""
Tests for the diagnostics sink and engine settings.
"""

from decimal import Decimal

from crystalbudget.core.config import EngineSettings, ProductionConfig, TestingConfig, get_config
from crystalbudget.core.events import Diagnostics, InvalidAmount, OrphanedReference, record


class TestDiagnostics:

    def test_handlers_receive_events(self):
        diagnostics = Diagnostics()
        seen = []
        everything = []
        diagnostics.subscribe('reference.orphaned', seen.append)
        diagnostics.subscribe('*', everything.append)

        diagnostics.record(OrphanedReference('food', 'gone', 'RUB'))
        diagnostics.record(InvalidAmount('expense', 'e1', 'abc'))

        assert [e.event_type for e in seen] == ['reference.orphaned']
        assert [e.event_type for e in everything] == ['reference.orphaned', 'amount.invalid']

    def test_failing_handler_does_not_raise(self):
        diagnostics = Diagnostics()

        def broken(event):
            raise RuntimeError('boom')

        diagnostics.subscribe('*', broken)
        diagnostics.record(InvalidAmount('income', 'i1', None))
        assert len(diagnostics.events) == 1

    def test_serialization_and_clear(self):
        diagnostics = Diagnostics()
        diagnostics.record(InvalidAmount('income', 'i1', float('nan')))

        event = diagnostics.to_list()[0]
        assert event['event_type'] == 'amount.invalid'
        assert event['data'] == {'kind': 'income', 'transaction_id': 'i1', 'value': 'nan'}

        diagnostics.clear()
        assert diagnostics.events == []

    def test_record_without_sink(self):
        record(None, InvalidAmount('income', 'i1', None))


class TestConfig:

    def test_get_config(self):
        assert get_config('testing') is TestingConfig
        assert get_config('unknown') is ProductionConfig

    def test_engine_settings_from_flask_config(self):
        settings = EngineSettings.from_config({
            'DEFAULT_CURRENCY': 'EUR',
            'CATEGORY_SHARE_WARNING': 0.3,
            'ROUNDING_TOLERANCE': '0.5',
        })
        assert settings.default_currency == 'EUR'
        assert settings.category_share_warning == Decimal('0.3')
        assert settings.rounding_tolerance == Decimal('0.5')
        assert settings.saturation_buffer == Decimal('0.05')

    def test_defaults(self):
        assert EngineSettings.from_config(None) == EngineSettings()

    def test_app_config_values(self, app):
        settings = EngineSettings.from_config(app.config)
        assert settings.default_currency == 'RUB'
        assert settings.low_utilization_percent == Decimal('50')
