import pytest

ROUTE_MODULES = [
    'healthhub.routes.admin_routes',
    'healthhub.routes.appointment_routes',
    'healthhub.routes.auth_routes',
    'healthhub.routes.bot_routes',
    'healthhub.routes.chat_routes',
]


@pytest.fixture(autouse=True)
def skip_schema_bootstrap(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in ROUTE_MODULES:
        monkeypatch.setattr(f'{module}.ensure_database_ready', lambda: None)
