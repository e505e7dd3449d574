import os
import warnings

# Ignore warnings from third-party SDKs
warnings.filterwarnings("ignore", category=DeprecationWarning, module="mux_python.*")

# Set test environment variables before any sideroom import reads them
os.environ.update({"DEMO_MODE": "true"})

from tests.fixtures.provider_fixtures import *  # noqa: E402, F403
