# Overview: Pytest coverage for the Flask CLI command groups.

from billing.models import Account, Product


class TestAccountsCommands:
    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["accounts", "create", "--name", "Acme Traders", "--code", "acme"])
        assert result.exit_code == 0
        assert "(ACME)" in result.output

        result = runner.invoke(args=["accounts", "list"])
        assert "ACME" in result.output
        assert "Acme Traders (active)" in result.output

    def test_duplicate_code(self, app, db_session, account_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["accounts", "create", "--name", "Again", "--code", "SHARMA"])

        assert result.exit_code != 0
        assert "already exists" in result.output
        assert db_session.query(Account).count() == 1


class TestCatalogCommands:
    def test_seed_demo(self, app, db_session, account_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["catalog", "seed-demo", "--account-id", str(account_a.id),
                                     "--count", "3", "--seed", "42"])

        assert result.exit_code == 0
        assert "Created 3 products" in result.output
        assert db_session.query(Product).filter_by(account_id=account_a.id).count() == 3

    def test_seed_demo_unknown_account(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["catalog", "seed-demo", "--account-id", "99999"])

        assert result.exit_code != 0
        assert "not found" in result.output
