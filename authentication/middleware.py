# =============== MIDDLEWARE FOR ORGANIZATION CONTEXT ===============
import logging
import uuid

logger = logging.getLogger(__name__)


class OrganizationMiddleware:
    """
    Middleware to pick up an explicit organization context.

    SuperAdmins are not bound to an organization, so clients send the tenant
    they are working on in the X-Organization-Id header.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        organization_id = request.META.get('HTTP_X_ORGANIZATION_ID')

        if organization_id:
            try:
                request.header_organization_id = str(uuid.UUID(organization_id))
            except ValueError:
                logger.warning(f"Ignoring malformed X-Organization-Id header: {organization_id!r}")
                request.header_organization_id = None
        else:
            request.header_organization_id = None

        response = self.get_response(request)
        return response
