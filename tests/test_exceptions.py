from fastapi_tenant_rbac import (
    Forbidden,
    PermissionValidationError,
    PolicyLookupUnavailable,
    RoleLookupError,
    RoleNotFoundError,
    RoleValidationError,
    Unauthorized,
)


class TestHTTPExceptions:
    def test_status_codes_are_distinct(self) -> None:
        assert Unauthorized().status_code == 401
        assert Forbidden().status_code == 403
        assert PolicyLookupUnavailable().status_code == 503

    def test_forbidden_has_default_detail(self) -> None:
        assert Forbidden().detail == "Forbidden"

    def test_forbidden_accepts_custom_detail(self) -> None:
        assert Forbidden(detail="Custom message").detail == "Custom message"

    def test_unauthorized_default_detail(self) -> None:
        assert Unauthorized().detail == "Authentication required"


class TestDomainExceptions:
    def test_validation_errors_are_value_errors(self) -> None:
        assert isinstance(PermissionValidationError("x", "bad"), ValueError)
        assert issubclass(RoleValidationError, ValueError)

    def test_permission_validation_error_message(self) -> None:
        exc = PermissionValidationError("content", "expected exactly one ':' separator")
        assert exc.permission == "content"
        assert "content" in str(exc)

    def test_role_not_found_is_key_error(self) -> None:
        assert issubclass(RoleNotFoundError, KeyError)

    def test_lookup_error_is_not_a_denial_type(self) -> None:
        assert not issubclass(RoleLookupError, (ValueError, KeyError))
