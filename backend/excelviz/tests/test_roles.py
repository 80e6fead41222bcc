import pytest
from excelviz.config import Settings
from excelviz.errors import AuthorizationError
from excelviz.roles import decide_role, assign_role, verify_admin_code


def test_decide_role():
    assert decide_role("admin", "letmein", "letmein") == "admin"
    assert decide_role("admin", "LETMEIN", "letmein") == "user"
    assert decide_role("admin", None, "letmein") == "user"
    assert decide_role("admin", "", "") == "user"
    assert decide_role("admin", "letmein", None) == "user"
    assert decide_role("user", "letmein", "letmein") == "user"
    assert decide_role(None, None, "letmein") == "user"
    assert decide_role("superuser", "letmein", "letmein") == "user"


def test_assign_role_rejects_bad_elevation():
    settings = Settings(admin_code="letmein")
    assert assign_role("admin", "letmein", settings) == "admin"
    assert assign_role("user", None, settings) == "user"
    with pytest.raises(AuthorizationError) as exc:
        assign_role("admin", "wrong", settings)
    assert exc.value.code == "invalid_admin_code"
    with pytest.raises(AuthorizationError):
        assign_role("admin", None, settings)


def test_no_secret_configured_never_elevates():
    with pytest.raises(AuthorizationError):
        assign_role("admin", "anything", Settings(admin_code=None))


def test_verify_admin_code():
    settings = Settings(admin_code="letmein")
    verify_admin_code("letmein", settings)
    with pytest.raises(AuthorizationError):
        verify_admin_code("nope", settings)
