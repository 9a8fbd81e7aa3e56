"""
Sample catalog used to seed and refresh the in-memory data source.
"""

from typing import Dict, List

from .models import Category, Product

CATEGORIES: Dict[int, str] = {
    101: "Electronics",
    102: "Accessories",
    103: "Gaming",
    104: "Networking",
    105: "Storage",
    106: "Software",
    107: "Photography",
}

# (id, name, description, price, stock, category_id)
_SAMPLE_ROWS = [
    (1, "Laptop", "High-performance laptop with 16GB RAM, 512GB SSD, and Intel Core i7 processor", 1200.50, 25, 101),
    (2, "Headphones", "Wireless over-ear headphones with active noise cancellation and 30-hour battery life", 50.00, 100, 102),
    (3, "Mouse", "Ergonomic wireless mouse with adjustable DPI and rechargeable battery", 25.99, 150, 102),
    (4, "Keyboard", "Mechanical keyboard with RGB backlighting and programmable keys", 75.50, 80, 102),
    (5, "Monitor", "27-inch 4K UHD monitor with HDR support and 144Hz refresh rate", 299.99, 45, 101),
    (6, "Webcam", "1080p Full HD webcam with built-in microphone and auto-focus", 89.99, 75, 101),
    (7, "Smartphone", "Flagship smartphone with 5G connectivity, triple camera system, and 128GB storage", 899.99, 50, 101),
    (8, "Tablet", "10.5-inch tablet with stylus support, 256GB storage, and all-day battery life", 599.99, 35, 101),
    (9, "Smart Watch", "Fitness tracking smart watch with heart rate monitor, GPS, and water resistance", 299.99, 60, 101),
    (10, "Wireless Speaker", "Portable Bluetooth speaker with 360-degree sound and 12-hour battery life", 129.99, 85, 101),
    (11, "Mouse Pad", "Extra-large mouse pad with non-slip rubber base", 15.99, 200, 102),
    (12, "USB Hub", "7-port USB 3.0 hub with individual power switches", 29.99, 120, 102),
    (13, "Laptop Stand", "Adjustable aluminum laptop stand with cooling ventilation", 45.99, 90, 102),
    (14, "Cable Organizer", "Cable management clips and ties for a tidy workspace", 19.99, 150, 102),
    (15, "Gaming Console", "Gaming console with 4K output, ray tracing, and 1TB SSD", 499.99, 30, 103),
    (16, "Gaming Controller", "Wireless controller with haptic feedback and adaptive triggers", 69.99, 100, 103),
    (17, "Gaming Headset", "7.1 surround sound headset with noise-canceling microphone", 129.99, 75, 103),
    (18, "Gaming Chair", "Ergonomic chair with lumbar support and adjustable armrests", 299.99, 40, 103),
    (19, "Gaming Mouse", "Gaming mouse with 16000 DPI sensor and RGB lighting", 89.99, 95, 103),
    (20, "Wireless Router", "Dual-band Wi-Fi 6 router with gigabit ethernet ports", 159.99, 55, 104),
    (21, "Network Switch", "8-port gigabit network switch", 89.99, 45, 104),
    (22, "Wi-Fi Extender", "Dual-band range extender covering up to 1500 sq ft", 49.99, 70, 104),
    (23, "Network Cable", "Cat6 ethernet cable, 25 feet, gold-plated connectors", 12.99, 200, 104),
    (24, "External SSD", "1TB portable SSD with USB-C and 1050MB/s reads", 179.99, 65, 105),
    (25, "USB Flash Drive", "64GB USB 3.0 flash drive with retractable connector", 29.99, 180, 105),
    (26, "Memory Card", "128GB microSD card with adapter, UHS-I", 39.99, 120, 105),
    (27, "Hard Drive Enclosure", "USB 3.0 enclosure for 2.5-inch SATA drives", 25.99, 90, 105),
    (28, "Antivirus Software", "Antivirus protection for up to 5 devices", 49.99, 100, 106),
    (29, "Office Suite", "Word processor, spreadsheet, and presentation software", 199.99, 85, 106),
    (30, "Design Software", "Graphic design and photo editing software", 599.99, 40, 106),
    (31, "Development IDE", "IDE with intelligent code completion and debugging tools", 299.99, 55, 106),
    (32, "Digital Camera", "24MP mirrorless camera with 4K video recording", 799.99, 30, 107),
    (33, "Camera Lens", "50mm f/1.8 prime lens with fast autofocus", 599.99, 25, 107),
    (34, "Camera Tripod", "Aluminum tripod with ball head and quick-release plate", 79.99, 60, 107),
    (35, "Camera Bag", "Padded camera backpack with customizable dividers", 89.99, 70, 107),
    (36, "Memory Card Reader", "USB 3.0 multi-card reader for SD, microSD, CF and MS", 29.99, 85, 107),
]


def sample_categories() -> List[Category]:
    return [Category(id=category_id, name=name) for category_id, name in CATEGORIES.items()]


def sample_products() -> List[Product]:
    """Fresh copies of the sample products, with categories attached."""
    return [
        Product(
            id=product_id,
            name=name,
            description=description,
            price=price,
            stock=stock,
            category_id=category_id,
            category=Category(id=category_id, name=CATEGORIES[category_id]),
        )
        for product_id, name, description, price, stock, category_id in _SAMPLE_ROWS
    ]
