from okta_test_data.main import cli

cli()
