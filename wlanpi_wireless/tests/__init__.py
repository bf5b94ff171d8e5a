"""
Test package for wlanpi-wireless

No test spawns a real wpa_cli: the control channel tests run against
FakeWpaCliProcess from conftest, which answers commands like a small
in-memory wpa_supplicant.
"""
