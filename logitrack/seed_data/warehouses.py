"""Seed data for the default regional warehouses."""

WAREHOUSES = [
    {
        "name": "Jakarta Warehouse",
        "address": "Jl. Warehouse No. 1",
        "city": "Jakarta",
        "region": "DKI Jakarta",
        "postal_code": "12345",
        "areas_served": ["Jakarta Pusat", "Jakarta Selatan"],
        "capacity": 200,
    },
    {
        "name": "Bandung Warehouse",
        "address": "Jl. Warehouse No. 2",
        "city": "Bandung",
        "region": "West Java",
        "postal_code": "40111",
        "areas_served": ["Bandung Utara", "Bandung Selatan"],
        "capacity": 150,
    },
    {
        "name": "Surabaya Warehouse",
        "address": "Jl. Warehouse No. 3",
        "city": "Surabaya",
        "region": "East Java",
        "postal_code": "60111",
        "areas_served": ["Surabaya Pusat", "Surabaya Timur"],
        "capacity": 180,
    },
]
