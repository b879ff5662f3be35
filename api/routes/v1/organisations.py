"""
api/routes/v1/organisations.py -- Membership-scoped organisation endpoints.

Routes:
  GET  /api/organisations                -- organisations the caller belongs to (requires auth)
  GET  /api/organisations/{org_id}       -- one organisation, members only (requires auth)
  POST /api/organisations                -- create; caller becomes a member (requires auth)
  POST /api/organisations/{org_id}/users -- add a user to an organisation (public, see below)

Auth policy:
  The add-user route is NOT behind get_identity. Any caller can add any
  existing user to any existing organisation. Whether that should require
  membership of the organisation is an open product decision, so the
  route keeps the behaviour it has always had.

  GET /organisations/{org_id} takes the id as a string so that a
  non-numeric id yields the same 404 as a foreign or missing organisation
  instead of a 422 that would reveal the id format.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import (
    AckResponse,
    AddUserRequest,
    OrganisationCreate,
    OrganisationList,
    OrganisationListResponse,
    OrganisationOut,
    OrganisationResponse,
)
from auth.dependencies import get_identity, get_store
from auth.membership import (
    add_user_to_organisation,
    create_organisation,
    get_organisation_for,
    list_organisations_for,
)
from auth.models import Identity
from auth.store import MembershipStore

router = APIRouter()


@router.get("/organisations", response_model=OrganisationListResponse, response_model_by_alias=True)
def list_organisations(
    identity: Identity = Depends(get_identity),
    store: MembershipStore = Depends(get_store),
) -> OrganisationListResponse:
    orgs = list_organisations_for(store, identity)
    return OrganisationListResponse(
        data=OrganisationList(organisations=[OrganisationOut.from_organisation(o) for o in orgs]),
    )


@router.get("/organisations/{org_id}", response_model=OrganisationResponse, response_model_by_alias=True)
def read_organisation(
    org_id: str,
    identity: Identity = Depends(get_identity),
    store: MembershipStore = Depends(get_store),
) -> OrganisationResponse:
    org = get_organisation_for(store, identity, org_id)
    return OrganisationResponse(
        message="Organisation user belongs to.",
        data=OrganisationOut.from_organisation(org),
    )


@router.post("/organisations", response_model=OrganisationResponse, response_model_by_alias=True)
def create_organisation_route(
    body: OrganisationCreate,
    identity: Identity = Depends(get_identity),
    store: MembershipStore = Depends(get_store),
) -> OrganisationResponse:
    """Create an organisation; the caller becomes its first member."""
    org = create_organisation(store, identity, body.name, body.description)
    return OrganisationResponse(
        message="Organisation created successfully",
        data=OrganisationOut.from_organisation(org),
    )


@router.post("/organisations/{org_id}/users", response_model=AckResponse, response_model_by_alias=True)
def add_user(
    org_id: int,
    body: AddUserRequest,
    store: MembershipStore = Depends(get_store),
) -> AckResponse:
    add_user_to_organisation(store, body.user_id, org_id)
    return AckResponse(message="User added to the organisation successfully")
