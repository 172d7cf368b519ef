"""Basic health check tests."""

from intake.config import IntakeSettings


def test_import_intake():
    """Test that intake package can be imported."""
    import intake
    assert intake.__version__ == "1.0.0"


def test_import_orchestrator():
    """Test that the core lifecycle types can be imported."""
    from intake.orchestrator import StepOrchestrator, StepStatus, SubmitOutcome

    assert StepStatus.UNINITIALIZED.value == "uninitialized"
    assert SubmitOutcome(ok=True).error_code is None
    assert StepOrchestrator.__name__ == "StepOrchestrator"


def test_settings_defaults():
    """Defaults apply when nothing is configured."""
    settings = IntakeSettings(_env_file=None)
    assert settings.is_development
    assert settings.max_top_rated_candidates == 5
    assert settings.storage_path is None
    assert settings.default_flow_name == "abonnement-aanvraag"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("INTAKE_ENV", "production")
    monkeypatch.setenv("MAX_TOP_RATED_CANDIDATES", "3")
    settings = IntakeSettings(_env_file=None)
    assert settings.is_production
    assert settings.max_top_rated_candidates == 3
