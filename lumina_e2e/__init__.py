"""
End-to-end browser test suite for the Lumina learning platform.

Modules:
    config          environment profiles and run settings
    test_data       Faker-backed users, courses and questions
    api_client      GraphQL client for test-user lifecycle and backend checks
    readiness       concurrent health polling until services are up
    storage         localStorage contract of the web app
    global_setup    once-per-run setup and teardown
    pages           page objects
    visual          screenshot stabilisation and baseline comparison
    debug           interaction errors and debug bundles
    reporter        CI reporter plugin
"""
