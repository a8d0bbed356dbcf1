import pytest

from storeshots.core import WalkthroughConfig

from fake_app import PACKAGE, FakeDevice


@pytest.fixture
def fake_device():
    return FakeDevice()


@pytest.fixture
def fast_config(tmp_path):
    """Config with short timeouts so absent elements skip quickly."""
    return WalkthroughConfig(
        package=PACKAGE,
        output_dir=tmp_path / "shots",
        element_timeout=0.05,
        poll_interval=0.01,
        initial_settle=0.05,
        step_settle=0.02,
    ).validate()


@pytest.fixture
def connected_device():
    """Skip unless exactly one Android device is reachable."""
    import os
    import subprocess

    if os.environ.get("SKIP_ANDROID_INTEGRATION") == "1":
        pytest.skip("SKIP_ANDROID_INTEGRATION=1; integration tests skipped")

    try:
        result = subprocess.run(['adb', 'devices'], capture_output=True, text=True)
    except FileNotFoundError:
        pytest.skip("adb not found in PATH")
    lines = result.stdout.strip().split('\n')
    devices = [line for line in lines[1:] if line.strip().endswith('device')]
    if len(devices) != 1:
        pytest.skip(f"Expected one Android device, found {len(devices)}")
    return None  # Use the only device
