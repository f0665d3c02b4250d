import pytest

from task_scoring.domain.value_objects.document_id import DocumentId


@pytest.mark.parametrize(
    "value",
    [
        "65a1f0c2e4b0a1b2c3d4e5f6",
        "65A1F0C2E4B0A1B2C3D4E5F6",
        "2f1c6d1e-8a4b-4c3d-9e2f-1a2b3c4d5e6f",
        "2f1c6d1e8a4b4c3d9e2f1a2b3c4d5e6f",
    ],
)
def test_valid_ids(value):
    assert DocumentId.is_valid(value)
    assert str(DocumentId(value)) == value


@pytest.mark.parametrize("value", ["", "team-a", "65a1f0c2e4b0a1b2c3d4e5", None, 42])
def test_invalid_ids(value):
    assert not DocumentId.is_valid(value)


def test_constructor_rejects_invalid_id():
    with pytest.raises(ValueError):
        DocumentId("not-an-id")

