import uuid
from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError, InvalidTransitionError
from ..models.models import FiberTeam
from ..schemas.fiber_teams import FiberTeamCreate, FiberTeamUpdate, TeamAssignment
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .stats import count_by


logger = structlog.get_logger(__name__)

ENTITY = "Fiber team"

AVAILABLE = "Available"
ASSIGNED = "Assigned"
ON_LEAVE = "On Leave"
INACTIVE = "Inactive"


def _assignment_dict(details: Union[TeamAssignment, Dict[str, Any]]) -> Dict[str, Any]:
    if not isinstance(details, TeamAssignment):
        details = TeamAssignment.model_validate(details)
    return details.model_dump(mode="json")


def _assignment_project(team: FiberTeam) -> Optional[str]:
    return (team.current_assignment or {}).get("project_id")


def _project(team: FiberTeam, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(team)
    data["project_name"] = resolver.project_name(_assignment_project(team))
    data["creator_name"] = resolver.user_name(team.created_by, UNKNOWN)
    return data


def _resolver_for(db: Session, rows: List[FiberTeam]) -> ReferenceResolver:
    return ReferenceResolver(db).load(
        user_ids=[t.created_by for t in rows],
        project_ids=[_assignment_project(t) for t in rows],
    )


def create_fiber_team(db: Session, payload: FiberTeamCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump(exclude={"current_assignment"})
    data["created_by"] = data.get("created_by") or actor_id
    if data["created_by"] is None:
        raise InvalidFieldError("created_by", "is required")
    if data["status"] == ASSIGNED:
        if payload.current_assignment is None:
            raise InvalidFieldError("current_assignment", "is required for an Assigned team")
        data["current_assignment"] = _assignment_dict(payload.current_assignment)
    elif payload.current_assignment is not None:
        raise InvalidFieldError("current_assignment", "is only allowed for an Assigned team")

    with transaction(db):
        team = FiberTeam(**data)
        db.add(team)
        db.flush()
        create_audit_log(db, "fiber_team", team.id, "CREATE", actor_id=actor_id,
                         changes_json={"team_name": team.team_name, "status": team.status})
        team_id = team.id
    logger.info("fiber_team_created", team_id=str(team_id), status=data["status"])
    return team_id


def update_fiber_team(
    db: Session, team_id: uuid.UUID, payload: FiberTeamUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    """
    Patch team details. Status may move to Available, On Leave or Inactive here,
    which drops any current assignment; Assigned is only reachable via assign_team.
    """
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        team = get_for_update(db, FiberTeam, team_id, ENTITY)
        target = data.get("status")
        if target == ASSIGNED and team.status != ASSIGNED:
            raise InvalidTransitionError(ENTITY, team.status, target)
        if target is not None and target != ASSIGNED and team.current_assignment is not None:
            data["current_assignment"] = None
        changes = apply_patch(team, data, protected=("created_by",))
        create_audit_log(db, "fiber_team", team.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("fiber_team_updated", team_id=str(team_id), fields=sorted(data))
    return team_id


def assign_team(
    db: Session,
    team_id: uuid.UUID,
    details: Union[TeamAssignment, Dict[str, Any]],
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    assignment = _assignment_dict(details)
    with transaction(db):
        team = get_for_update(db, FiberTeam, team_id, ENTITY)
        before = {"status": team.status, "current_assignment": team.current_assignment}
        team.status = ASSIGNED
        team.current_assignment = assignment
        create_audit_log(db, "fiber_team", team.id, "ASSIGN", actor_id=actor_id,
                         changes_json={"before": before, "after": {"status": ASSIGNED, "current_assignment": assignment}})
    logger.info("fiber_team_assigned", team_id=str(team_id), project_id=assignment.get("project_id"))
    return team_id


def clear_assignment(db: Session, team_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        team = get_for_update(db, FiberTeam, team_id, ENTITY)
        before = {"status": team.status, "current_assignment": team.current_assignment}
        team.status = AVAILABLE
        team.current_assignment = None
        create_audit_log(db, "fiber_team", team.id, "CLEAR", actor_id=actor_id,
                         changes_json={"before": before, "after": {"status": AVAILABLE}})
    logger.info("fiber_team_assignment_cleared", team_id=str(team_id))
    return team_id


def delete_fiber_team(db: Session, team_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        team = get_for_update(db, FiberTeam, team_id, ENTITY)
        create_audit_log(db, "fiber_team", team.id, "DELETE", actor_id=actor_id,
                         changes_json={"team_name": team.team_name})
        db.delete(team)
    logger.info("fiber_team_deleted", team_id=str(team_id))
    return team_id


def get_fiber_team(db: Session, team_id: uuid.UUID) -> Optional[Dict]:
    team = get_by_id(db, FiberTeam, team_id)
    if not team:
        return None
    return _project(team, _resolver_for(db, [team]))


def list_fiber_teams(db: Session, status: Optional[str] = None, team_lead: Optional[str] = None) -> List[Dict]:
    rows = indexed_list(
        db, FiberTeam, {"status": status, "team_lead": team_lead}, ("status", "team_lead"),
        order_by=FiberTeam.team_name,
    )
    resolver = _resolver_for(db, rows)
    return [_project(t, resolver) for t in rows]


def get_fiber_team_stats(db: Session) -> Dict:
    rows = db.query(FiberTeam).all()
    by_status = count_by(rows, "status")
    return {
        "total_teams": len(rows),
        "by_status": by_status,
        "total_members": sum(len(t.members or []) for t in rows),
        "available_teams": by_status.get(AVAILABLE, 0),
        "assigned_teams": by_status.get(ASSIGNED, 0),
    }
