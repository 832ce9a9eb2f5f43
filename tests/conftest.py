"""Pytest configuration and shared fixtures for geotopo tests."""

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

GAZETTEER_HEADER = (
    '"city","city_ascii","lat","lng","country","iso2","iso3",'
    '"admin_name","capital","population","id"'
)

GAZETTEER_ROWS = [
    '"Tokyo","Tokyo","35.6762","139.6503","Japan","JP","JPN","Tōkyō","primary","37732000","1392685764"',
    '"New York","New York","40.7128","-74.0060","United States","US","USA","New York","","18908608","1840034016"',
    '"London","London","51.5074","-0.1278","United Kingdom","GB","GBR","London, City of","primary","11262000","1826645935"',
    '"Paris","Paris","48.8566","2.3522","France","FR","FRA","Île-de-France","primary","11060000","1250015082"',
    '"Boston","Boston","42.3601","-71.0589","United States","US","USA","Massachusetts","admin","4688346","1840000455"',
    '"Boston","Boston","52.9789","-0.0266","United Kingdom","GB","GBR","Lincolnshire","","41340","1826137154"',
    '"Springfield","Springfield","39.7817","-89.6501","United States","US","USA","Illinois","admin","114394","1840009517"',
    '"Springfield","Springfield","37.2153","-93.2982","United States","US","USA","Missouri","","169176","1840009904"',
    '"Victoria","Victoria","48.4283","-123.3647","Canada","CA","CAN","British Columbia","admin","92141","1124147375"',
    '"Victoria","Victoria","-4.6167","55.4500","Seychelles","SC","SYC","English River","primary","26450","1690193270"',
    '"Portland","Portland","43.6591","-70.2568","United States","US","USA","Maine","","","1840000327"',
    '"Portland","Portland","45.5152","-122.6784","United States","US","USA","Oregon","","2074775","1840019941"',
    '"Frankfurt","Frankfurt","50.1109","8.6821","Germany","DE","DEU","Hesse","","791000","1276054552"',
    '"Osaka","Osaka","34.6937","135.5023","Japan","JP","JPN","Ōsaka","admin","15126000","1392419823"',
    '"Singapore","Singapore","1.3521","103.8198","Singapore","SG","SGP","","primary","5983000","1702341327"',
    '"São Paulo","Sao Paulo","-23.5505","-46.6333","Brazil","BR","BRA","São Paulo","admin","22046000","1076532519"',
    '"Nowhere","Nowhere","not-a-number","10.0","Atlantis","AT","ATL","","","","9999999901"',
    '"Driftwood","Driftwood","12.0","east","Atlantis","AT","ATL","","","","9999999902"',
    '"Stub","Stub","1.0"',
]

MAP_SVG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<svg xmlns="http://www.w3.org/2000/svg" width="1000" height="500" '
    'viewBox="0 0 1000 500">\n'
    '  <rect x="0" y="0" width="1000" height="500" fill="#dde"/>\n'
    "</svg>\n"
)


@pytest.fixture
def gazetteer_csv(tmp_path):
    """Small worldcities table with name collisions and malformed rows."""
    path = tmp_path / "worldcities.csv"
    path.write_text("\n".join([GAZETTEER_HEADER, *GAZETTEER_ROWS]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def gazetteer(gazetteer_csv):
    """Gazetteer loaded from the sample table."""
    from geotopo.gazetteer import load_gazetteer

    return load_gazetteer(gazetteer_csv)


@pytest.fixture
def resolver(gazetteer):
    from geotopo.resolver import LocationResolver

    return LocationResolver(gazetteer)


@pytest.fixture
def map_svg(tmp_path):
    """SVG map asset declaring a 1000x500 viewBox."""
    path = tmp_path / "world.svg"
    path.write_text(MAP_SVG, encoding="utf-8")
    return path


@pytest.fixture
def sample_config(gazetteer_csv):
    """Sample configuration dictionary for testing."""
    return {
        "data_sources": {"gazetteer": gazetteer_csv.name},
        "projection": {
            "viewport_width": 1000,
            "viewport_height": 500,
            "max_latitude": 85.0,
        },
        "synthesis": {
            "seed": 42,
            "density_divisor": 3,
            "weight_range": [1.0, 101.0],
            "cost_range": [1, 100],
            "links_per_device": [1, 3],
            "healthy_threshold": 90.0,
            "warning_threshold": 70.0,
        },
        "service": {"service_name": "Topol", "service_area": 0},
        "output": {"json_indent": 2, "dpi": 72},
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config):
    """Create a temporary configuration file for testing."""
    import yaml

    config_file = tmp_path / "test_config.yml"
    with open(config_file, "w") as f:
        yaml.dump(sample_config, f, default_flow_style=False, indent=2)
    return config_file


@pytest.fixture
def invalid_config_file(tmp_path):
    """Create an invalid YAML configuration file for testing."""
    config_file = tmp_path / "invalid_config.yml"
    config_file.write_text("invalid: yaml: content: [unclosed")
    return config_file


@pytest.fixture
def geotopo_config(temp_config_file):
    """Create a complete GeoTopoConfig object for testing."""
    from geotopo.config import GeoTopoConfig

    return GeoTopoConfig.from_yaml(temp_config_file)


@pytest.fixture
def inventory_records():
    """Raw inventory records as delivered by the device inventory service."""
    return [
        {
            "id": "dev-nyc",
            "equipment": {
                "sysName": "nyc-core-1",
                "deviceType": "DEVICE_TYPE_ROUTER",
                "deviceStatus": "DEVICE_STATUS_ONLINE",
                "location": "New York, USA",
            },
        },
        {
            "id": "dev-lon",
            "equipment": {
                "sysName": "lon-agg-1",
                "deviceType": 2,
                "deviceStatus": 1,
                "location": "London, UK",
            },
        },
        {
            "id": "dev-tyo",
            "equipment": {
                "sys_name": "tyo-fw-1",
                "device_type": "firewall",
                "device_status": "offline",
                "location": "Tokyo-DC-01",
            },
        },
    ]


@pytest.fixture
def make_device():
    """Factory for devices with equipment metadata."""
    from geotopo.models import Device, DeviceStatus, DeviceType, EquipmentInfo

    def _make(
        device_id,
        location="",
        status=DeviceStatus.ONLINE,
        device_type=DeviceType.ROUTER,
        latitude=0.0,
        longitude=0.0,
    ):
        return Device(
            id=device_id,
            equipment=EquipmentInfo(
                sys_name=f"{device_id}-name",
                device_type=device_type,
                device_status=status,
                location=location,
                latitude=latitude,
                longitude=longitude,
            ),
        )

    return _make
