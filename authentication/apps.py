from django.apps import AppConfig
from django.db.models.signals import post_migrate


def create_default_roles(sender, **kwargs):
    from django.contrib.auth.models import Group
    from .permissions import Roles

    for role in Roles.ALL:
        Group.objects.get_or_create(name=role)


class AuthenticationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'authentication'

    def ready(self):
        post_migrate.connect(create_default_roles, sender=self)
