from __future__ import annotations

# ruff: noqa: E402
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = PROJECT_ROOT / "backend"
for path in (PROJECT_ROOT, BACKEND_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import pytest
from fastapi.testclient import TestClient
from planzy.core.app import create_app
from planzy.core.db import dispose_engine, get_engine, session_scope
from planzy.core.settings import settings
from planzy.models import Base
from planzy.models.orm import Place, Vacation, VacationPlace
from planzy.services.place_provider import reset_place_provider
from planzy.services.planner_metrics import reset_planner_metrics
from planzy.services.vacation_planner_service import reset_vacation_planner_service


@pytest.fixture(scope="session", autouse=True)
def configure_test_database(tmp_path_factory) -> str:
    """Point settings.database_url to a throwaway SQLite database for tests."""

    original_url = settings.database_url
    original_log_dir = settings.log_directory
    workdir = tmp_path_factory.mktemp("planzy")
    settings.database_url = f"sqlite:///{workdir / 'planzy_test.db'}"
    settings.log_directory = str(workdir / "logs")
    dispose_engine()
    Base.metadata.create_all(get_engine())
    yield settings.database_url
    dispose_engine()
    settings.database_url = original_url
    settings.log_directory = original_log_dir


@pytest.fixture(autouse=True)
def configure_planner() -> None:
    """Use the deterministic provider and fresh singletons in every test."""

    settings.place_provider = "mock"
    settings.tripadvisor_api_key = None
    settings.tripadvisor_cache_enabled = False
    settings.planner_max_concurrency = 4
    reset_place_provider()
    reset_vacation_planner_service()
    reset_planner_metrics()


@pytest.fixture(autouse=True)
def clean_tables(configure_test_database: str) -> None:
    with session_scope() as session:
        session.query(VacationPlace).delete()
        session.query(Vacation).delete()
        session.query(Place).delete()


@pytest.fixture()
def client() -> TestClient:
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
