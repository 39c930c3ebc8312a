from app.core.exceptions import AppError, ConfigurationError, ResourceNotFoundError, SchedulerError


def test_scheduler_error_structure():
    err = SchedulerError(message="Test error", details={"foo": "bar"})
    assert err.status_code == 400
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert isinstance(err, AppError)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_resource_not_found_carries_the_id():
    err = ResourceNotFoundError("Interventionist", "i-42")
    assert err.status_code == 404
    assert err.message == "Interventionist with id i-42 not found"
    assert err.details == {"resource_type": "Interventionist", "resource_id": "i-42"}


def test_configuration_error_is_a_server_error():
    err = ConfigurationError("bad defaults")
    assert err.status_code == 500
    assert str(err) == "bad defaults"
