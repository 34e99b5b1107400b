from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.utils.text import slugify
import uuid


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class TimeStampedModel(models.Model):
    """Base model with created_at and updated_at fields"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


def unique_slug(model, value, max_length=100, exclude_pk=None, **scope):
    """Slugify ``value`` and add a -N suffix until it is free within ``scope``."""
    base_slug = slugify(value)[:max_length] or 'item'
    slug = base_slug
    counter = 1
    queryset = model.objects.filter(**scope)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    while queryset.filter(slug=slug).exists():
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


# =============== ORGANIZATIONS ===============

class Organization(TimeStampedModel):
    """Tenant running one sagra"""
    SUBSCRIPTION_STATUSES = [
        ('Trial', 'Trial'),
        ('Active', 'Active'),
        ('Expired', 'Expired'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True)
    subscription_status = models.CharField(max_length=20, choices=SUBSCRIPTION_STATUSES, default='Trial')

    class Meta:
        db_table = 'organizations'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.slug})"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Organization, self.name, exclude_pk=self.pk)
        super().save(*args, **kwargs)


# =============== USER MANAGEMENT ===============

class User(AbstractUser):
    """Staff account, roles are carried by auth groups"""
    STATUS_CHOICES = [
        ('Active', 'Active'),
        ('PendingDeletion', 'Pending Deletion'),
        ('Deleted', 'Deleted'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    organization = models.ForeignKey(
        Organization, on_delete=models.SET_NULL, null=True, blank=True, related_name='users'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Active')

    username = None
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']
    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def role_names(self):
        return sorted(self.groups.values_list('name', flat=True))
