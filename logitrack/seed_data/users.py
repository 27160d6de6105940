"""
Seed data for staff accounts: one admin and the Palembang driver pool.
Development passwords only; change them before going live.
"""

ADMIN = {
    "username": "admin",
    "password": "Admin123",
    "email": "admin@logitrack.id",
    "full_name": "Admin User",
    "user_type": "admin",
}

DRIVER_PASSWORD = "Driver123"

DRIVERS = [
    {
        "username": "driver1",
        "email": "driver1@logitrack.id",
        "full_name": "Budi Santoso",
        "service_area": "Ilir Timur I",
        "phone_number": "081234567890",
        "address": "Jl. Merdeka No. 10",
        "city": "Palembang",
        "postal_code": "30111",
    },
    {
        "username": "driver2",
        "email": "driver2@logitrack.id",
        "full_name": "Ahmad Dahlan",
        "service_area": "Ilir Timur II",
        "phone_number": "081234567891",
        "address": "Jl. Veteran No. 15",
        "city": "Palembang",
        "postal_code": "30112",
    },
    {
        "username": "driver3",
        "email": "driver3@logitrack.id",
        "full_name": "Dewi Kartika",
        "service_area": "Ilir Barat I",
        "phone_number": "081234567892",
        "address": "Jl. Diponegoro No. 20",
        "city": "Palembang",
        "postal_code": "30113",
    },
    {
        "username": "driver4",
        "email": "driver4@logitrack.id",
        "full_name": "Rini Susanti",
        "service_area": "Ilir Barat II",
        "phone_number": "081234567893",
        "address": "Jl. Sudirman No. 25",
        "city": "Palembang",
        "postal_code": "30114",
    },
    {
        "username": "driver5",
        "email": "driver5@logitrack.id",
        "full_name": "Joko Widodo",
        "service_area": "Jakabaring",
        "phone_number": "081234567894",
        "address": "Jl. Jakabaring Sei Jeruju No. 30",
        "city": "Palembang",
        "postal_code": "30115",
    },
]
