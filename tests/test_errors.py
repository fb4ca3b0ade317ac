from craftbridge.errors import APIError, DockerError, ImageNotFoundError, NotFoundError


def test_api_error_message_and_fields():
    error = APIError(500, "500 Internal Server Error", "failed")
    assert str(error) == "500 Internal Server Error: failed"
    assert error.status_code == 500
    assert error.status == "500 Internal Server Error"
    assert error.message == "failed"


def test_api_error_is_docker_error():
    error = APIError(409, "409 Conflict", "busy")
    assert isinstance(error, DockerError)
    assert error.status_code == 409
    assert str(error) == "409 Conflict: busy"


def test_not_found_default_message():
    assert str(NotFoundError()) == "Not found"


def test_not_found_custom_message():
    assert str(NotFoundError("no such container")) == "no such container"


def test_image_not_found_default_message():
    assert str(ImageNotFoundError()) == "Image not found"


def test_image_not_found_caught_as_not_found():
    error = ImageNotFoundError()
    assert isinstance(error, NotFoundError)
    assert isinstance(error, DockerError)
    assert str(error) == "Image not found"