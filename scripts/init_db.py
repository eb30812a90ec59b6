#!/usr/bin/env python3
"""
Initialize database with sample data for development/testing.

Creates customers, vehicles, service history and invoices, then builds a
maintenance schedule for each vehicle so the reminder worker has
something to find.
"""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from motorai.models import Customer, Invoice, ServiceHistory, Vehicle
from motorai.models.base import Base
from motorai.models.invoice import InvoiceStatus
from motorai.services import database
from motorai.services.service_intervals import get_service_intervals
from motorai.services.service_schedule import create_service_schedule
from motorai.services.vehicle_category import VehicleCategory, determine_vehicle_category


async def init_database():
    """Create tables and seed with sample data."""
    print("Initializing database...")

    session_maker = await database.init_db(create_tables=False)
    engine = database.engine

    # Create tables
    print("Creating tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    today = date.today()

    # Seed sample data
    print("Seeding sample data...")
    async with session_maker() as db:
        customers = [
            Customer(
                phone_number="+15551234567",
                first_name="John",
                last_name="Doe",
                email="john.doe@example.com",
            ),
            Customer(
                phone_number="+15559876543",
                first_name="Jane",
                last_name="Smith",
                email="jane.smith@example.com",
                preferred_contact_method="sms",
            ),
            Customer(
                phone_number="+15555555555",
                first_name="Bob",
                last_name="Johnson",
                preferred_contact_method="in_app",
                receive_reminders=False,
            ),
        ]
        db.add_all(customers)
        await db.commit()

        vehicles = [
            Vehicle(
                customer_id=customers[0].id,
                vin="1HGBH41JXMN109186",
                make="Honda",
                model="Accord",
                year=2021,
                body_class="Sedan/Saloon",
                vehicle_type="PASSENGER CAR",
                fuel_type="Gasoline",
                current_mileage=35000,
            ),
            Vehicle(
                customer_id=customers[1].id,
                vin="1FTFW1ET5DFC10314",
                make="Ford",
                model="F-150",
                year=2013,
                body_class="Pickup",
                vehicle_type="TRUCK",
                fuel_type="Gasoline",
                current_mileage=118000,
            ),
            Vehicle(
                customer_id=customers[2].id,
                vin="5YJ3E1EA7KF317000",
                make="Tesla",
                model="Model 3",
                year=2019,
                body_class="Sedan/Saloon",
                vehicle_type="PASSENGER CAR",
                fuel_type="Electric",
                current_mileage=41000,
            ),
        ]
        for vehicle in vehicles:
            vehicle.category = determine_vehicle_category(
                vehicle.body_class, vehicle.vehicle_type, vehicle.fuel_type
            ).value
        db.add_all(vehicles)
        await db.commit()

        history = [
            ServiceHistory(
                vehicle_id=vehicles[0].id,
                service_type="Oil Change",
                service_date=today - timedelta(days=120),
                mileage=29500,
                total_cost=Decimal("70.00"),
            ),
            ServiceHistory(
                vehicle_id=vehicles[0].id,
                service_type="Brake Inspection",
                service_date=today - timedelta(days=400),
                mileage=18000,
                total_cost=Decimal("40.00"),
            ),
            ServiceHistory(
                vehicle_id=vehicles[1].id,
                service_type="Oil Change",
                service_date=today - timedelta(days=60),
                mileage=114000,
                total_cost=Decimal("70.00"),
            ),
        ]
        db.add_all(history)

        invoices = [
            Invoice(
                customer_id=customers[0].id,
                vehicle_id=vehicles[0].id,
                invoice_number="INV-1001",
                total=Decimal("245.50"),
                due_date=today - timedelta(days=5),
                status=InvoiceStatus.SENT,
            ),
            Invoice(
                customer_id=customers[1].id,
                vehicle_id=vehicles[1].id,
                invoice_number="INV-1002",
                total=Decimal("89.99"),
                due_date=today + timedelta(days=10),
                status=InvoiceStatus.SENT,
            ),
        ]
        db.add_all(invoices)
        await db.commit()

        # Build maintenance schedules from the stored attributes
        for vehicle in vehicles:
            category = VehicleCategory(vehicle.category)
            profile = get_service_intervals(category, vehicle.year)
            await create_service_schedule(
                db,
                vehicle.id,
                category,
                profile,
                last_service_date=today - timedelta(days=90),
                current_mileage=vehicle.current_mileage,
            )

    print("Database initialized successfully!")
    print(f"Created {len(customers)} customers")
    print(f"Created {len(vehicles)} vehicles")
    print(f"Created {len(history)} service records")
    print(f"Created {len(invoices)} invoices")

    await database.close_db()


if __name__ == "__main__":
    asyncio.run(init_database())
