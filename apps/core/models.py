"""
Company, driver and vehicle records the ELD core resolves telemetry against.
"""
from django.conf import settings
from django.db import models


HOS_CYCLE_CHOICES = [
    ('US_60_7', '60 hours / 7 days'),
    ('US_70_8', '70 hours / 8 days'),
]


class BaseModel(models.Model):
    """
    Abstract base model that provides common fields for all models.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Company(BaseModel):
    """
    Motor carrier. Every ELD query is scoped to exactly one company.
    """
    name = models.CharField(max_length=200)
    dot_number = models.CharField(max_length=20, unique=True)
    carrier_name = models.CharField(
        max_length=200,
        blank=True,
        help_text="Official carrier name as registered with FMCSA"
    )

    # HOS rule configuration
    hos_cycle = models.CharField(
        max_length=10,
        choices=HOS_CYCLE_CHOICES,
        blank=True,
        help_text="Multi-day duty cycle; blank uses the deployment default"
    )
    split_sleeper_enabled = models.BooleanField(
        default=False,
        help_text="Drivers may use the sleeper-berth split provision"
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'core_company'
        verbose_name_plural = 'companies'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} (DOT: {self.dot_number})"


class Driver(BaseModel):
    """
    Internal driver record.
    """
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='drivers'
    )
    name = models.CharField(max_length=100)
    license_number = models.CharField(max_length=50, blank=True)
    license_state = models.CharField(max_length=2, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    hos_cycle = models.CharField(
        max_length=10,
        choices=HOS_CYCLE_CHOICES,
        blank=True,
        help_text="Overrides the company cycle when set"
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'core_driver'
        ordering = ['name']
        indexes = [
            models.Index(fields=['company', 'is_active'], name='core_driver_company_active_idx'),
        ]

    def __str__(self):
        return self.name

    def get_hos_cycle(self):
        """Cycle in force for this driver: driver, then company, then settings."""
        return self.hos_cycle or self.company.hos_cycle or settings.ELD_DEFAULT_HOS_CYCLE


class Vehicle(BaseModel):
    """
    Truck a device can be installed in.
    """
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='vehicles'
    )
    vehicle_number = models.CharField(
        max_length=50,
        help_text="Fleet vehicle number or identifier"
    )
    vin = models.CharField(max_length=17, blank=True)
    license_plate = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'core_vehicle'
        ordering = ['vehicle_number']

    def __str__(self):
        return f"#{self.vehicle_number}"


class CompanyMembership(BaseModel):
    """
    Links an authenticated user to the company whose data they may see.
    """
    ROLE_CHOICES = [
        ('manager', 'Manager'),
        ('dispatcher', 'Dispatcher'),
        ('driver', 'Driver'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='membership'
    )
    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='dispatcher')

    class Meta:
        db_table = 'core_company_membership'

    def __str__(self):
        return f"{self.user} @ {self.company.name} ({self.role})"

    @property
    def is_manager(self):
        return self.role == 'manager'
