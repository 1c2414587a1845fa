"""
Hourglass Test Suite

- Unit tests for naming, descriptors and settings
- Resource graph tests for each component, declared against Pulumi mocks
- Scenario tests for the standalone and cluster programs
- Driver, core and CLI tests with the Automation API mocked out
"""
