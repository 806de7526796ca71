# apps/core/management/commands/create_test_eld_data.py
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from datetime import datetime, time, timedelta, timezone as dt_timezone
from apps.core.models import Driver, Vehicle, Company, CompanyMembership
from apps.eld.models import DriverMapping, DutyStatusLog, ELDDevice, PROVIDER_SAMSARA


# (status, hours) covering one full day from 06:00 UTC
DAY_PLAN = [
    (DutyStatusLog.LOG_ON_DUTY, 0.5),
    (DutyStatusLog.LOG_DRIVING, 5),
    (DutyStatusLog.LOG_OFF_DUTY, 0.5),
    (DutyStatusLog.LOG_DRIVING, 3),
    (DutyStatusLog.LOG_ON_DUTY, 1),
    (DutyStatusLog.LOG_OFF_DUTY, 14),
]


class Command(BaseCommand):
    help = 'Create a demo company with devices, mappings and a week of duty-status logs'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing test data first',
        )
        parser.add_argument(
            '--days',
            type=int,
            default=7,
            help='Number of past days of logs to create',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing test data...')
            Company.objects.filter(name__startswith='Test').delete()
            get_user_model().objects.filter(username__startswith='test-').delete()

        self.stdout.write('Creating test data...')

        with transaction.atomic():
            company = Company.objects.create(
                name="Test Trucking Company",
                carrier_name="Test Trucking LLC",
                dot_number="TEST123456",
                hos_cycle='US_70_8',
            )

            for username, role in (('test-manager', 'manager'), ('test-dispatcher', 'dispatcher')):
                user = get_user_model().objects.create_user(username=username, password='test-password')
                CompanyMembership.objects.create(user=user, company=company, role=role)

            drivers = []
            devices = []
            for i, name in enumerate(["John Smith", "Maria Rodriguez", "David Johnson"], start=1):
                vehicle = Vehicle.objects.create(
                    company=company,
                    vehicle_number=f"TRUCK{i:03d}",
                    vin=f"1HGCM82633A00000{i}",
                    license_plate=f"TEST{i:03d}",
                )
                device = ELDDevice.objects.create(
                    company=company,
                    device_name=f"Samsara VG {i}",
                    provider=PROVIDER_SAMSARA,
                    provider_device_id=f"test-veh-{i}",
                    serial_number=f"TEST-SAM-{i:03d}",
                    truck=vehicle,
                )
                driver = Driver.objects.create(
                    company=company,
                    name=f"Test {name}",
                    email=f"{name.lower().replace(' ', '.')}@testtruck.com",
                )
                DriverMapping.objects.create(
                    company=company,
                    eld_device=device,
                    provider=PROVIDER_SAMSARA,
                    provider_driver_id=f"test-drv-{i}",
                    driver=driver,
                    driver_name=driver.name,
                )
                drivers.append(driver)
                devices.append(device)

            self.stdout.write('Creating duty status entries...')
            logs = []
            today = timezone.now().date()
            for day in range(options['days'], 0, -1):
                current_date = today - timedelta(days=day)
                day_start = datetime.combine(current_date, time(6), tzinfo=dt_timezone.utc)

                for driver, device in zip(drivers, devices):
                    start = day_start
                    for index, (log_type, hours) in enumerate(DAY_PLAN):
                        end = start + timedelta(hours=hours)
                        logs.append(DutyStatusLog(
                            company=company,
                            driver=driver,
                            truck=device.truck,
                            eld_device=device,
                            external_id=f"test-{current_date.isoformat()}-{index}",
                            log_type=log_type,
                            log_date=current_date,
                            start_time=start,
                            end_time=end,
                            duration_minutes=int(hours * 60),
                        ))
                        start = end

            DutyStatusLog.objects.bulk_create(logs)

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully created test data:\n'
                f'- 1 Company with a manager and a dispatcher login\n'
                f'- {len(devices)} Samsara devices with driver mappings\n'
                f'- {len(drivers)} Drivers\n'
                f'- {len(logs)} duty status entries for the last {options["days"]} days'
            )
        )

        self.stdout.write('\nYou can now:')
        self.stdout.write('1. Visit /admin to view the data')
        self.stdout.write('2. Obtain a token at /api/token/ as test-dispatcher')
        self.stdout.write('3. Check /api/v1/eld/hos/ for the fleet HOS overview')
