"""
Default data written on first startup: the administrator account and the starter course catalog.
"""
import logging

from auth_utils import hash_password
from config.settings import settings
from crud.base import EntityStore
from models.fitness import Course, SubscriptionTier, User

logger = logging.getLogger(__name__)

DEFAULT_ADMIN = {
    "id": "admin-1",
    "username": "admin",
    "email": "admin@fitness.com",
    "subscription": SubscriptionTier.EXPERT,
    "is_admin": True,
}

DEFAULT_THUMBNAIL_CARDIO = "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=400"
DEFAULT_THUMBNAIL_STRENGTH = "https://images.unsplash.com/photo-1534438327276-14e5300c3a48?w=400"
DEFAULT_VIDEO = "https://www.youtube.com/embed/dQw4w9WgXcQ"

DEFAULT_COURSES = [
    {
        "id": "course-1",
        "title": "Introduction au Fitness",
        "description": "Apprenez les bases du fitness avec des exercices simples et efficaces pour débuter votre transformation.",
        "level": SubscriptionTier.DEBUTANT,
        "category": "Cardio",
        "duration": 30,
        "instructor": "Coach Sarah",
        "thumbnail": DEFAULT_THUMBNAIL_CARDIO,
    },
    {
        "id": "course-2",
        "title": "Musculation Intermédiaire",
        "description": "Développez votre force avec des exercices de musculation adaptés au niveau medium.",
        "level": SubscriptionTier.MEDIUM,
        "category": "Musculation",
        "duration": 45,
        "instructor": "Coach Mike",
        "thumbnail": "https://images.unsplash.com/photo-1581009146145-b5ef050c2e1e?w=400",
    },
    {
        "id": "course-3",
        "title": "CrossFit Avancé",
        "description": "Entraînement intensif de CrossFit pour les athlètes expérimentés. Repoussez vos limites !",
        "level": SubscriptionTier.EXPERT,
        "category": "CrossFit",
        "duration": 60,
        "instructor": "Coach Alex",
        "thumbnail": DEFAULT_THUMBNAIL_STRENGTH,
    },
    {
        "id": "course-4",
        "title": "Yoga Débutant",
        "description": "Découvrez la sérénité et la flexibilité avec cette session de yoga pour débutants.",
        "level": SubscriptionTier.DEBUTANT,
        "category": "Yoga",
        "duration": 35,
        "instructor": "Coach Emma",
        "thumbnail": "https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?w=400",
    },
    {
        "id": "course-5",
        "title": "HIIT Medium",
        "description": "Brûlez des calories avec cette session HIIT de niveau intermédiaire.",
        "level": SubscriptionTier.MEDIUM,
        "category": "HIIT",
        "duration": 25,
        "instructor": "Coach Tom",
        "thumbnail": DEFAULT_THUMBNAIL_CARDIO,
    },
    {
        "id": "course-6",
        "title": "Powerlifting Expert",
        "description": "Maîtrisez les mouvements de powerlifting avec cette formation experte.",
        "level": SubscriptionTier.EXPERT,
        "category": "Powerlifting",
        "duration": 90,
        "instructor": "Coach David",
        "thumbnail": DEFAULT_THUMBNAIL_STRENGTH,
    },
]


async def seed_defaults(store: EntityStore) -> None:
    """Write the default admin and courses into an empty store. Existing data is left alone."""
    if not await store.list_users():
        admin = User(password_hash=hash_password(settings.admin_default_password), **DEFAULT_ADMIN)
        await store.put_user(admin)
        logger.info("Seeded default administrator account")

    if not await store.list_courses():
        for data in DEFAULT_COURSES:
            await store.put_course(Course(video_url=DEFAULT_VIDEO, **data))
        logger.info(f"Seeded {len(DEFAULT_COURSES)} default courses")
