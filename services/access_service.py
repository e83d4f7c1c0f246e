"""
Access Service - decides which courses a user may open.

Default rule: a user sees every course whose level rank is at most the rank of
their subscription tier. An admin can override that decision for a single
(user, course) pair; the override is stored only while it disagrees with the
default, so setting access back to the default removes it.

Known limitation: set_access is a read-modify-write against the store with no
locking. Two admins toggling the same pair at the same time may lose an update.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from backend.utils.errors import NotFoundError
from crud.base import EntityStore
from models.fitness import AccessOverride, Course, SubscriptionTier, User, tier_rank, utcnow

logger = logging.getLogger(__name__)

GRANTED_BY_ADMIN = "Accès accordé par l'administrateur"
DENIED_BY_ADMIN = "Accès refusé par l'administrateur"


@dataclass(frozen=True)
class AccessDecision:
    has_access: bool
    is_override: bool
    reason: Optional[str] = None


@dataclass
class CourseListing:
    available: List[Course] = field(default_factory=list)
    locked: List[Course] = field(default_factory=list)


def default_access(user: User, course: Course) -> bool:
    return tier_rank(user.subscription) >= tier_rank(course.level)


def effective_access(user: User, course: Course, override: Optional[AccessOverride]) -> AccessDecision:
    """
    Apply override precedence over the tier default.

    Only an override flagged override_subscription counts; any other record
    for the pair is ignored and the default applies.
    """
    if override is not None and override.override_subscription:
        return AccessDecision(has_access=override.has_access, is_override=True, reason=override.reason)
    return AccessDecision(has_access=default_access(user, course), is_override=False)


def group_by_category(courses: List[Course]) -> Dict[str, List[Course]]:
    """Group courses by category, keeping the order in which categories first appear."""
    groups: Dict[str, List[Course]] = {}
    for course in courses:
        groups.setdefault(course.category, []).append(course)
    return groups


def _index_overrides(overrides: List[AccessOverride]) -> Dict[tuple, AccessOverride]:
    return {(override.user_id, override.course_id): override for override in overrides}


class AccessService:
    """
    Service class for course access resolution and admin overrides.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    async def _require_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _require_course(self, course_id: str) -> Course:
        course = await self.store.get_course(course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        return course

    async def resolve(self, user_id: str, course_id: str) -> AccessDecision:
        user = await self._require_user(user_id)
        course = await self._require_course(course_id)
        override = await self.store.get_access_override(user_id, course_id)
        return effective_access(user, course, override)

    async def set_access(
        self,
        user_id: str,
        course_id: str,
        desired_access: bool,
        reason: Optional[str] = None,
    ) -> AccessDecision:
        """
        Set the access of a user to a course.

        Stores an override only when desired_access differs from the tier
        default; otherwise removes any existing override for the pair.
        Calling it twice with the same arguments yields the same stored state.

        Returns:
            The effective access decision after the change
        """
        user = await self._require_user(user_id)
        course = await self._require_course(course_id)

        if desired_access == default_access(user, course):
            await self.store.remove_access_override(user_id, course_id)
            logger.info(f"Access of {user.username} to '{course.title}' reset to subscription default")
            return AccessDecision(has_access=desired_access, is_override=False)

        now = utcnow()
        reason = reason or (GRANTED_BY_ADMIN if desired_access else DENIED_BY_ADMIN)
        await self.store.put_access_override(
            user_id,
            course_id,
            {
                "has_access": desired_access,
                "override_subscription": True,
                "reason": reason,
                "granted_at": now if desired_access else None,
                "revoked_at": None if desired_access else now,
            },
        )
        logger.info(
            f"Access of {user.username} to '{course.title}' "
            f"{'granted' if desired_access else 'denied'} by override"
        )
        return AccessDecision(has_access=desired_access, is_override=True, reason=reason)

    async def partition_courses(self, user_id: str) -> CourseListing:
        """Split the catalog into the courses a user can open and the locked ones."""
        user = await self._require_user(user_id)
        overrides = _index_overrides(
            [o for o in await self.store.list_access_overrides() if o.user_id == user_id]
        )
        listing = CourseListing()
        for course in await self.store.list_courses():
            decision = effective_access(user, course, overrides.get((user_id, course.id)))
            if decision.has_access:
                listing.available.append(course)
            else:
                listing.locked.append(course)
        return listing

    async def access_matrix(
        self,
        level_filter: Optional[SubscriptionTier] = None,
        search: Optional[str] = None,
    ) -> List[dict]:
        """
        Effective access of every non-admin user to every course, for the
        admin access grid.

        Args:
            level_filter: Only include courses of this level
            search: Case-insensitive substring the username must contain
        """
        users = [user for user in await self.store.list_users() if not user.is_admin]
        if search:
            users = [user for user in users if search.lower() in user.username.lower()]
        courses = await self.store.list_courses()
        if level_filter is not None:
            courses = [course for course in courses if course.level == level_filter]
        overrides = _index_overrides(await self.store.list_access_overrides())

        rows = []
        for user in users:
            cells = []
            for course in courses:
                decision = effective_access(user, course, overrides.get((user.id, course.id)))
                cells.append({
                    "course_id": course.id,
                    "has_access": decision.has_access,
                    "is_override": decision.is_override,
                    "reason": decision.reason,
                })
            rows.append({"user_id": user.id, "username": user.username, "courses": cells})
        return rows
