pytest_plugins = ["overflow.testing.fixtures"]
