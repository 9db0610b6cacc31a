"""Factory Boy factories for backend records used in tests."""

import factory


def _object_id(n):
    return f"{n:024x}"


class UserFactory(factory.DictFactory):
    """Embedded user reference (``assignedTo``, ``createdBy``, ``user``)."""

    _id = factory.Sequence(lambda n: _object_id(0x100000 + n))
    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"user{n}@example.com")


class DigitalAssetFactory(factory.DictFactory):
    """One generated block inside ``digitalAssets``."""

    url = factory.Sequence(lambda n: f"/uploads/digital-assets/qr_{n}.png")
    data = factory.LazyAttribute(lambda o: {"url": o.url})
    generatedAt = "2024-05-01T10:00:00.000Z"


class AssetTypeFactory(factory.DictFactory):
    """Asset type with no custom fields by default."""

    _id = factory.Sequence(lambda n: _object_id(0x200000 + n))
    name = factory.Sequence(lambda n: f"Type {n}")
    fields = factory.LazyFunction(list)


class AssetFactory(factory.DictFactory):
    """Asset record as returned by the backend."""

    _id = factory.Sequence(lambda n: _object_id(n + 1))
    tagId = factory.Sequence(lambda n: f"PJ-A{n:03d}")
    assetType = "Chiller"
    subcategory = ""
    mobilityCategory = "immovable"
    brand = factory.Sequence(lambda n: f"Brand {n}")
    model = factory.Sequence(lambda n: f"M-{n}")
    serialNumber = factory.Sequence(lambda n: f"SN{n:05d}")
    capacity = "10 kW"
    yearOfInstallation = "2021"
    status = "active"
    priority = "medium"
    project = factory.LazyFunction(
        lambda: {"projectId": "p1", "projectName": "Tower One"}
    )
    assignedTo = factory.SubFactory(UserFactory)
    createdBy = factory.SubFactory(UserFactory)
    location = factory.LazyFunction(
        lambda: {
            "latitude": "25.2048",
            "longitude": "55.2708",
            "building": "Tower One",
            "floor": "3",
            "room": "301",
        }
    )
    digitalAssets = factory.LazyFunction(dict)
    subAssets = factory.LazyFunction(lambda: {"movable": [], "immovable": []})
    scanHistory = factory.LazyFunction(list)
    tags = factory.LazyFunction(list)
    notes = ""
    createdAt = "2024-01-01T08:00:00.000Z"
    updatedAt = "2024-01-02T08:00:00.000Z"


class AuditLogFactory(factory.DictFactory):
    """Audit trail entry."""

    _id = factory.Sequence(lambda n: _object_id(0x300000 + n))
    user = factory.SubFactory(UserFactory)
    action = "create"
    resourceType = "Asset"
    resourceId = factory.Sequence(lambda n: _object_id(n + 1))
    details = factory.LazyFunction(
        lambda: {"tagId": "PJ-A001", "assetType": "Chiller", "brand": "Carrier"}
    )
    timestamp = "2024-03-01T12:00:00.000Z"
