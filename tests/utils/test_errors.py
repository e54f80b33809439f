from miniapp.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    DuplicateRecordError,
    ErrorCode,
    ForbiddenError,
    MiniAppError,
    NotFoundError,
    ValidationError,
)


def test_miniapp_error_base():
    err = MiniAppError("test error", ErrorCode.PROFILE_REQUIRED, 418, {"foo": "bar"})
    assert str(err) == "test error"
    assert err.message == "test error"
    assert err.code == ErrorCode.PROFILE_REQUIRED
    assert err.status_code == 418
    assert err.details == {"foo": "bar"}


def test_miniapp_error_defaults():
    err = MiniAppError("test error")
    assert err.code == ErrorCode.INTERNAL_ERROR
    assert err.status_code == 500
    assert err.details == {}


def test_storage_errors_are_opaque():
    for err in (DatabaseError("db error"), DuplicateRecordError("dup"), ConfigurationError("config")):
        assert isinstance(err, MiniAppError)
        assert err.code == ErrorCode.INTERNAL_ERROR
        assert err.status_code == 500
    assert isinstance(DuplicateRecordError("dup"), DatabaseError)


def test_validation_error():
    err = ValidationError("bad", details={"field": "reason"})
    assert err.status_code == 400
    assert err.code == ErrorCode.INVALID_INPUT
    assert ValidationError("bad", ErrorCode.INVALID_REASON).code == ErrorCode.INVALID_REASON


def test_http_status_mapping():
    assert AuthenticationError("who").status_code == 401
    assert AuthenticationError("who").code == ErrorCode.UNAUTHORIZED
    assert ForbiddenError("no").status_code == 403
    assert ForbiddenError("no").code == ErrorCode.FORBIDDEN
    assert NotFoundError("gone", ErrorCode.USER_NOT_FOUND).status_code == 404
    assert ConflictError("again", ErrorCode.ALREADY_REPORTED).status_code == 409


def test_error_codes_are_strings():
    assert ErrorCode.ALREADY_REPORTED == "ALREADY_REPORTED"
    assert ErrorCode("CANNOT_SWIPE_SELF") is ErrorCode.CANNOT_SWIPE_SELF
