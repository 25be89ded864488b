import logging

from session_auth.auth.models import (
    Tenant,
    TenantBranding,
    TenantLimits,
    TenantSettings,
    UserProfile,
)
from session_auth.auth.service import TokenService
from session_auth.core.config import Settings

logger = logging.getLogger(__name__)


def seed_default_data(service: TokenService, settings: Settings) -> None:
    """Create the default tenant and administrator if they do not exist yet."""
    if service.get_tenant(settings.DEFAULT_TENANT_ID) is None:
        service.create_tenant(
            Tenant(
                id=settings.DEFAULT_TENANT_ID,
                name=settings.DEFAULT_TENANT_NAME,
                domain=settings.DEFAULT_TENANT_DOMAIN,
                settings=TenantSettings(
                    branding=TenantBranding(
                        logo="/logo.png",
                        primary_color="#0070f3",
                        secondary_color="#7928ca",
                    ),
                    features={
                        "assessments": True,
                        "reports": True,
                        "analytics": True,
                        "multiTenant": False,
                    },
                    limits=TenantLimits(max_users=1000, max_storage=1000000, max_api_calls=100000),
                ),
                status="active",
            )
        )
        logger.info("Seeded default tenant id=%s", settings.DEFAULT_TENANT_ID)

    if service.find_user_by_email(settings.DEFAULT_ADMIN_EMAIL) is not None:
        return

    password = settings.admin_password
    if not password:
        logger.warning("DEFAULT_ADMIN_PASSWORD is not set; skipping default admin seed")
        return

    service.create_user(
        user_id=settings.DEFAULT_ADMIN_ID,
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=password,
        tenant_id=settings.DEFAULT_TENANT_ID,
        roles=["admin", "superuser"],
        permissions=["*"],
        profile=UserProfile(first_name="System", last_name="Administrator"),
    )
    logger.info("Seeded default admin user_id=%s", settings.DEFAULT_ADMIN_ID)
