"""Unit tests for projection shapes and graph assembly."""
from projection_lab.repositories.user_repository import (
    assemble_user_graph,
    projection_from_row,
)
from projection_lab.schemas.projections import UserDTOProjection, UserIdDTO, UserProjection
from projection_lab.schemas.organization import OrganizationResponse
from projection_lab.schemas.user import UserInput


def _row(user_id: str, given_name: str, supervisor_id: str | None) -> dict:
    return {
        "id": user_id,
        "given_name": given_name,
        "family_name": "Nordmann",
        "supervisor_id": supervisor_id,
        "organization_id": "org-1",
        "organization_name": "MyOrg",
    }


def test_assemble_user_graph_nests_supervisors():
    rows = {
        "ola": _row("ola", "Ola", None),
        "kari": _row("kari", "Kari", "ola"),
        "hans": _row("hans", "Hans", "kari"),
    }

    hans = assemble_user_graph(rows, "hans")

    assert hans.id == "hans"
    assert hans.supervised_by.id == "kari"
    assert hans.supervised_by.supervised_by.id == "ola"
    assert hans.supervised_by.supervised_by.supervised_by is None
    assert hans.supervised_by.belongs_to.name == "MyOrg"


def test_assemble_user_graph_missing_root():
    assert assemble_user_graph({"ola": _row("ola", "Ola", None)}, "kari") is None


def test_assemble_user_graph_stops_at_missing_supervisor():
    rows = {"kari": _row("kari", "Kari", "gone")}

    kari = assemble_user_graph(rows, "kari")

    assert kari.supervised_by is None


def test_assemble_user_graph_closes_cycle_on_revisited_user():
    rows = {
        "a": _row("a", "A", "b"),
        "b": _row("b", "B", "a"),
    }

    a = assemble_user_graph(rows, "a")

    # Each distinct user keeps its stored supervisor; the chain closes on "a"
    assert a.supervised_by.id == "b"
    assert a.supervised_by.supervised_by.id == "a"
    assert a.supervised_by.supervised_by.supervised_by is None


def test_projection_from_row():
    projection = projection_from_row(_row("kari", "Kari", "ola"))

    assert projection.supervised_by.id == "ola"
    assert projection.belongs_to == OrganizationResponse(id="org-1", name="MyOrg")
    assert projection_from_row(_row("ola", "Ola", None)).supervised_by is None


def test_projection_serializes_camel_case():
    projection = projection_from_row(_row("kari", "Kari", "ola"))

    assert projection.model_dump(by_alias=True) == {
        "id": "kari",
        "givenName": "Kari",
        "familyName": "Nordmann",
        "belongsTo": {"id": "org-1", "name": "MyOrg"},
        "supervisedBy": {"id": "ola"},
    }


def test_dto_and_projection_share_wire_shape():
    organization = OrganizationResponse(id="org-1", name="MyOrg")
    projection = UserProjection(
        id="kari",
        given_name="Kari",
        belongs_to=organization,
        supervised_by={"id": "ola"},
    )
    dto = UserDTOProjection(
        id="kari",
        given_name="Kari",
        belongs_to=organization,
        supervised_by=UserIdDTO(id="ola"),
    )

    assert projection.model_dump(by_alias=True) == dto.model_dump(by_alias=True)


def test_user_input_accepts_camel_and_snake_case():
    camel = UserInput.model_validate({"givenName": "Ola", "supervisorId": "kari"})
    snake = UserInput.model_validate({"given_name": "Ola", "supervisor_id": "kari"})

    assert camel == snake
    assert camel.family_name is None
    assert camel.id is None
