"""Pytest configuration for integration tests.

Integration tests interact with real external services (Mux, the stream
backend) and require actual credentials to run.
"""

import warnings

# Ignore warnings from third-party SDKs
warnings.filterwarnings("ignore", category=DeprecationWarning, module="mux_python.*")
