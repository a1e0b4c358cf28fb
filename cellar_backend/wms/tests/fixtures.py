# wms/tests/fixtures.py

from django.contrib.auth import get_user_model

from partners.models import Partner
from wms.models import Location, Stock

User = get_user_model()

SASSICAIA_2016 = "101426320161200750"
MASSETO_2018 = "110052920181200750"


class WarehouseFixtureMixin:
    def setUp(self):
        self.operator = User.objects.create_user(email="floor@cellar.test", password="pass", role="warehouse")
        self.owner = Partner.objects.create(name="Cru Partners", type=Partner.TYPE_WINE_PARTNER)

        self.rack_a = Location.objects.create(location_code="a-01-01", location_type=Location.TYPE_RACK)
        self.rack_b = Location.objects.create(location_code="A-01-02", location_type=Location.TYPE_RACK)
        self.receiving = Location.objects.create(location_code="RCV-01", location_type=Location.TYPE_RECEIVING)

    def make_stock(self, *, location=None, owner=None, lwin18=SASSICAIA_2016, quantity=5, **extra):
        extra.setdefault("product_name", "Sassicaia 2016")
        return Stock.objects.create(
            location=location or self.rack_a,
            owner=owner or self.owner,
            lwin18=lwin18,
            quantity_cases=quantity,
            **extra,
        )
