from types import MappingProxyType
from unittest.mock import patch

import pytest

from gas_oracle.desired_config import parse_desired_configuration
from gas_oracle.exceptions import (
    PreconditionError,
    ReadFailure,
    SubmissionFailure,
    UnknownChain,
)
from gas_oracle.reconciler import FetchedGasData, GasDataReconciler, diff_gas_data
from gas_oracle.types import RemoteGasData, RemoteGasDataConfig

from .common import FakeOracles, get_test_chain_directory
from .factories import faker

X_DOMAIN = 1000
Y_DOMAIN = 2000
Z_DOMAIN = 3000
SOL_DOMAIN = 4000


def get_desired(table):
    return parse_desired_configuration(
        {
            local: {
                remote: {"tokenExchangeRate": rate, "gasPrice": price}
                for remote, (rate, price) in remotes.items()
            }
            for local, remotes in table.items()
        }
    )


def reconcile(oracles, local_chains, desired, dry_run=False):
    reconciler = GasDataReconciler(
        chain_directory=get_test_chain_directory(),
        oracle_contracts=oracles.contracts,
        submit_transaction=oracles.submit_transaction,
    )
    with patch(
        "gas_oracle.reconciler.get_remote_gas_data",
        side_effect=oracles.get_remote_gas_data,
    ):
        return reconciler.reconcile(local_chains, desired, dry_run)


class TestDiffGasData:
    def test_exact_match(self):
        gas_data = faker.remote_gas_data()
        reports, configs = diff_gas_data(
            [FetchedGasData("y", Y_DOMAIN, gas_data, RemoteGasData(*gas_data))]
        )
        assert configs == []
        assert len(reports) == 1
        assert not reports[0].updated

    def test_differs_by_single_unit(self):
        existing = RemoteGasData(token_exchange_rate=10, gas_price=100)
        for desired in (RemoteGasData(11, 100), RemoteGasData(10, 101)):
            reports, configs = diff_gas_data(
                [FetchedGasData("y", Y_DOMAIN, existing, desired)]
            )
            assert configs == [RemoteGasDataConfig.from_gas_data(Y_DOMAIN, desired)]
            assert reports[0].updated
            assert reports[0].existing == existing
            assert reports[0].desired == desired

    def test_keeps_order(self):
        fetched = [
            FetchedGasData("z", Z_DOMAIN, RemoteGasData(1, 1), RemoteGasData(2, 2)),
            FetchedGasData("y", Y_DOMAIN, RemoteGasData(1, 1), RemoteGasData(1, 1)),
            FetchedGasData("x", X_DOMAIN, RemoteGasData(1, 1), RemoteGasData(3, 3)),
        ]
        reports, configs = diff_gas_data(fetched)
        assert [r.remote for r in reports] == ["z", "y", "x"]
        assert [c.remote_domain for c in configs] == [Z_DOMAIN, X_DOMAIN]


class TestGasDataReconciler:
    def test_scenario(self):
        oracles = FakeOracles(
            {
                "x": {
                    Y_DOMAIN: RemoteGasData(10, 100),
                    Z_DOMAIN: RemoteGasData(4, 50),
                }
            }
        )
        desired = get_desired({"x": {"y": (10, 100), "z": (5, 50)}})

        reports = reconcile(oracles, ["x"], desired)

        assert len(reports) == 1
        report = reports[0]
        assert report.chain == "x"
        assert not report.skipped
        assert report.configs == [
            RemoteGasDataConfig(
                remote_domain=Z_DOMAIN, token_exchange_rate=5, gas_price=50
            )
        ]
        assert oracles.submitted == [("x", [(Z_DOMAIN, 5, 50)])]
        assert report.tx_hash is not None

        updated = {r.remote: r.updated for r in report.remotes}
        assert updated == {"y": False, "z": True}

    def test_batching(self):
        oracles = FakeOracles(
            {
                "x": {
                    Y_DOMAIN: RemoteGasData(1, 1),
                    Z_DOMAIN: RemoteGasData(2, 2),
                    SOL_DOMAIN: RemoteGasData(3, 3),
                }
            }
        )
        desired = get_desired({"x": {"y": (1, 1), "z": (20, 2), "sol": (3, 30)}})

        reconcile(oracles, ["x"], desired)

        assert oracles.submitted == [("x", [(Z_DOMAIN, 20, 2), (SOL_DOMAIN, 3, 30)])]

    def test_nothing_to_update(self):
        oracles = FakeOracles(
            {"x": {Y_DOMAIN: RemoteGasData(1, 1), Z_DOMAIN: RemoteGasData(2, 2)}}
        )
        desired = get_desired({"x": {"y": (1, 1), "z": (2, 2)}})

        reports = reconcile(oracles, ["x"], desired)

        assert oracles.submitted == []
        assert reports[0].configs == []
        assert reports[0].tx_hash is None

    def test_idempotent(self):
        oracles = FakeOracles({"x": {}, "y": {Z_DOMAIN: RemoteGasData(7, 7)}})
        desired = get_desired(
            {
                "x": {"y": (10, 100), "z": (5, 50)},
                "y": {"x": (1, 2), "z": (7, 7)},
            }
        )

        first = reconcile(oracles, ["x", "y"], desired)
        assert oracles.submitted_chains() == ["x", "y"]
        assert [len(r.configs) for r in first] == [2, 1]

        second = reconcile(oracles, ["x", "y"], desired)
        assert oracles.submitted_chains() == ["x", "y"]
        assert all(not r.configs for r in second)
        assert all(not remote.updated for r in second for remote in r.remotes)

    def test_dry_run(self):
        state = {
            "x": {Y_DOMAIN: RemoteGasData(10, 100), Z_DOMAIN: RemoteGasData(4, 50)},
            "y": {X_DOMAIN: RemoteGasData(1, 1)},
        }
        desired = get_desired(
            {"x": {"y": (11, 100), "z": (5, 50)}, "y": {"x": (1, 1)}}
        )

        dry_oracles = FakeOracles(state)
        dry_reports = reconcile(dry_oracles, ["x", "y"], desired, dry_run=True)
        assert dry_oracles.submitted == []
        assert all(r.tx_hash is None for r in dry_reports)

        oracles = FakeOracles(state)
        reports = reconcile(oracles, ["x", "y"], desired, dry_run=False)
        assert [r.configs for r in dry_reports] == [r.configs for r in reports]
        assert oracles.submitted_chains() == ["x"]

    def test_dry_run_does_not_build_call(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"y": (1, 1)}})
        with patch(
            "gas_oracle.reconciler.get_set_remote_gas_data_configs_call"
        ) as build_mock:
            reconcile(oracles, ["x"], desired, dry_run=True)
        build_mock.assert_not_called()

    def test_protocol_filtering(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"sol": (1, 1)}})

        reports = reconcile(oracles, ["sol", "x"], desired)

        assert reports[0].chain == "sol"
        assert reports[0].skipped
        assert reports[0].remotes == []
        assert reports[1].chain == "x"
        assert not reports[1].skipped
        assert all(chain != "sol" for chain, _ in oracles.reads)
        assert oracles.submitted_chains() == ["x"]

    def test_missing_config(self):
        oracles = FakeOracles({"x": {}, "y": {}})
        desired = get_desired({"x": {"y": (1, 1)}})

        with pytest.raises(PreconditionError):
            reconcile(oracles, ["x", "y"], desired)

        assert oracles.reads == []
        assert oracles.submitted == []

    def test_missing_contract(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"y": (1, 1)}, "y": {"x": (1, 1)}})

        with pytest.raises(PreconditionError):
            reconcile(oracles, ["x", "y"], desired)
        assert oracles.reads == []

    def test_unknown_local_chain(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"y": (1, 1)}})

        with pytest.raises(UnknownChain):
            reconcile(oracles, ["x", "unknown"], desired)
        assert oracles.reads == []

    def test_unknown_remote_chain(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"unknown": (1, 1)}})

        with pytest.raises(UnknownChain):
            reconcile(oracles, ["x"], desired)
        assert oracles.submitted == []

    def test_no_local_chains(self):
        with pytest.raises(PreconditionError):
            reconcile(FakeOracles({}), [], get_desired({}))

    def test_reads_follow_desired_order(self):
        oracles = FakeOracles({"x": {}, "y": {}})
        desired = get_desired(
            {"x": {"z": (1, 1), "y": (1, 1)}, "y": {"sol": (1, 1), "x": (1, 1)}}
        )

        reconcile(oracles, ["y", "x"], desired, dry_run=True)

        assert oracles.reads == [
            ("y", SOL_DOMAIN),
            ("y", X_DOMAIN),
            ("x", Z_DOMAIN),
            ("x", Y_DOMAIN),
        ]

    def test_only_desired_remotes_are_read(self):
        oracles = FakeOracles(
            {"x": {Y_DOMAIN: RemoteGasData(1, 1), Z_DOMAIN: RemoteGasData(5, 5)}}
        )
        desired = get_desired({"x": {"y": (2, 2)}})

        reconcile(oracles, ["x"], desired)

        assert oracles.reads == [("x", Y_DOMAIN)]
        assert oracles.state["x"][Z_DOMAIN] == RemoteGasData(5, 5)

    def test_read_failure_aborts_run(self):
        oracles = FakeOracles({"x": {}, "y": {}})
        desired = get_desired({"x": {"y": (1, 1)}, "y": {"x": (1, 1)}})
        get_remote_gas_data = oracles.get_remote_gas_data

        def failing_read(contract, remote_domain):
            if contract.address == oracles.contracts["y"].address:
                raise ReadFailure("connection refused")
            return get_remote_gas_data(contract, remote_domain)

        oracles.get_remote_gas_data = failing_read
        with pytest.raises(ReadFailure):
            reconcile(oracles, ["x", "y"], desired)

        # the first chain keeps its update
        assert oracles.submitted_chains() == ["x"]

    def test_submission_failure_aborts_run(self):
        oracles = FakeOracles({"x": {}, "y": {}, "z": {}})
        desired = get_desired(
            {"x": {"y": (1, 1)}, "y": {"x": (1, 1)}, "z": {"x": (1, 1)}}
        )
        submit_transaction = oracles.submit_transaction

        def failing_submit(chain, function_call):
            if chain == "y":
                raise SubmissionFailure("transaction reverted")
            return submit_transaction(chain, function_call)

        oracles.submit_transaction = failing_submit
        with pytest.raises(SubmissionFailure):
            reconcile(oracles, ["x", "y", "z"], desired)

        assert oracles.submitted_chains() == ["x"]
        assert oracles.state["x"][Y_DOMAIN] == RemoteGasData(1, 1)
        assert all(chain != "z" for chain, _ in oracles.reads)

    def test_desired_configuration_not_mutated(self):
        oracles = FakeOracles({"x": {}})
        desired = get_desired({"x": {"y": (1, 1), "z": (2, 2)}})
        before = {local: dict(remotes) for local, remotes in desired.items()}

        reconcile(oracles, ["x"], desired)

        assert isinstance(desired, MappingProxyType)
        assert {local: dict(remotes) for local, remotes in desired.items()} == before
