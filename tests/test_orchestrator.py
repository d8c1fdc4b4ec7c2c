import pytest

from web3_wallet.errors import CryptoError, NetworkError, ValidationError
from web3_wallet.registry.models import ChainDefinition, TokenDefinition
from web3_wallet.transfer.fees import FeeData, LegacyFee, ModernFee
from web3_wallet.transfer.models import TransferFailure, TransferItem, TransferSuccess
from web3_wallet.transfer.orchestrator import TransferOrchestrator

from conftest import SENDER, FakeKeystore, FakeNetwork

ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
CAROL = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

USDC = TokenDefinition(
    address="0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238", symbol="USDC", decimals=6, chain_id=11155111
)


def _orchestrator(keystore=None, network=None, **kwargs):
    return TransferOrchestrator(keystore or FakeKeystore(), network or FakeNetwork(), **kwargs)


@pytest.mark.asyncio
async def test_bulk_transfer_isolates_failed_item(sepolia):
    network = FakeNetwork(failures={2: NetworkError("insufficient funds")})
    keystore = FakeKeystore()
    progress = []
    items = [TransferItem(ALICE, "0.1"), TransferItem(BOB, "0.2"), TransferItem(CAROL, "0.3")]

    outcomes = await _orchestrator(keystore, network).bulk_transfer(
        SENDER, "pw", items, sepolia, on_progress=lambda i, n: progress.append((i, n))
    )

    assert [o.success for o in outcomes] == [True, False, True]
    assert outcomes[0] == TransferSuccess(recipient=ALICE, amount="0.1", tx_hash="0xtx1")
    assert outcomes[1] == TransferFailure(recipient=BOB, amount="0.2", error="insufficient funds")
    assert outcomes[2].tx_hash == "0xtx3"
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert len(keystore.calls) == 1
    assert network.fee_queries == 1
    assert [s["value"] for s in network.submitted] == [10**17, 2 * 10**17, 3 * 10**17]


@pytest.mark.asyncio
async def test_bulk_transfer_returns_one_outcome_per_item_when_all_fail(sepolia):
    failures = {n: RuntimeError() for n in range(1, 5)}
    items = [TransferItem(ALICE, "1")] * 4

    outcomes = await _orchestrator(network=FakeNetwork(failures=failures)).bulk_transfer(
        SENDER, "pw", items, sepolia
    )

    assert len(outcomes) == 4
    assert all(isinstance(o, TransferFailure) for o in outcomes)
    assert outcomes[0].error == "RuntimeError"


@pytest.mark.asyncio
async def test_bulk_transfer_with_no_items(sepolia):
    network = FakeNetwork()

    assert await _orchestrator(network=network).bulk_transfer(SENDER, "pw", [], sepolia) == []
    assert network.submitted == []


@pytest.mark.asyncio
async def test_invalid_address_and_amount_become_item_failures(sepolia):
    network = FakeNetwork()
    items = [TransferItem("not-an-address", "1"), TransferItem(ALICE, "-1"), TransferItem(BOB, "1")]

    outcomes = await _orchestrator(network=network).bulk_transfer(SENDER, "pw", items, sepolia)

    assert [o.success for o in outcomes] == [False, False, True]
    assert "Invalid recipient" in outcomes[0].error
    assert "negative" in outcomes[1].error
    assert len(network.submitted) == 1


@pytest.mark.asyncio
async def test_wrong_password_aborts_before_any_item(sepolia):
    network = FakeNetwork()
    keystore = FakeKeystore(error=CryptoError("Could not decrypt keystore"))
    progress = []

    with pytest.raises(CryptoError):
        await _orchestrator(keystore, network).bulk_transfer(
            SENDER, "bad", [TransferItem(ALICE, "1")], sepolia, on_progress=lambda i, n: progress.append(i)
        )

    assert network.fee_queries == 0
    assert network.submitted == []
    assert progress == []


@pytest.mark.asyncio
async def test_async_progress_callback_is_awaited(sepolia):
    seen = []

    async def on_progress(done, total):
        seen.append((done, total))

    await _orchestrator().bulk_transfer(
        SENDER, "pw", [TransferItem(ALICE, "1"), TransferItem(BOB, "1")], sepolia, on_progress=on_progress
    )

    assert seen == [(1, 2), (2, 2)]


@pytest.mark.asyncio
async def test_bulk_token_transfer_uses_token_decimals(sepolia):
    network = FakeNetwork()

    outcomes = await _orchestrator(network=network).bulk_transfer(
        SENDER, "pw", [TransferItem(ALICE, "2.5")], sepolia, token=USDC
    )

    assert outcomes[0].success
    assert network.submitted[0]["kind"] == "token"
    assert network.submitted[0]["value"] == 2_500_000
    assert network.submitted[0]["token"] == USDC


@pytest.mark.asyncio
async def test_token_from_other_chain_is_rejected_up_front(sepolia):
    keystore = FakeKeystore()
    mainnet_usdc = TokenDefinition(address=USDC.address, symbol="USDC", decimals=6, chain_id=1)

    with pytest.raises(ValidationError):
        await _orchestrator(keystore).bulk_transfer(
            SENDER, "pw", [TransferItem(ALICE, "1")], sepolia, token=mainnet_usdc
        )

    assert keystore.calls == []


@pytest.mark.asyncio
async def test_low_max_fee_sends_every_item_with_legacy_pricing(sepolia):
    network = FakeNetwork(fee_data=FeeData(gas_price=100, max_fee_per_gas=1))

    await _orchestrator(network=network).bulk_transfer(
        SENDER, "pw", [TransferItem(ALICE, "1"), TransferItem(BOB, "1")], sepolia
    )

    assert [s["fee"] for s in network.submitted] == [LegacyFee(100), LegacyFee(100)]


@pytest.mark.asyncio
async def test_modern_fee_when_network_reports_sane_values(sepolia):
    network = FakeNetwork()

    await _orchestrator(network=network).transfer_native(SENDER, "pw", ALICE, "1", sepolia)

    assert network.submitted[0]["fee"] == ModernFee()


@pytest.mark.asyncio
async def test_single_native_transfer_returns_success(sepolia):
    result = await _orchestrator().transfer_native(SENDER, "pw", ALICE, "0.5", sepolia)

    assert result == TransferSuccess(recipient=ALICE, amount="0.5", tx_hash="0xtx1")


@pytest.mark.asyncio
async def test_single_transfer_propagates_errors(sepolia):
    network = FakeNetwork(failures={1: NetworkError("nonce too low")})

    with pytest.raises(NetworkError, match="nonce too low"):
        await _orchestrator(network=network).transfer_native(SENDER, "pw", ALICE, "1", sepolia)


@pytest.mark.asyncio
async def test_single_transfer_rejects_invalid_address(sepolia):
    with pytest.raises(ValidationError):
        await _orchestrator().transfer_native(SENDER, "pw", "0x123", "1", sepolia)


@pytest.mark.asyncio
async def test_single_token_transfer(sepolia):
    network = FakeNetwork()

    result = await _orchestrator(network=network).transfer_token(SENDER, "pw", BOB, "10", USDC, sepolia)

    assert result.success
    assert network.submitted[0]["value"] == 10_000_000


@pytest.mark.asyncio
async def test_custom_address_validator_is_used():
    chain = ChainDefinition(id=31337, name="Local", symbol="ETH", rpc_url="http://localhost:8545")
    orchestrator = _orchestrator(is_valid_address=lambda a: a == "anything")

    result = await orchestrator.transfer_native(SENDER, "pw", "anything", "1", chain)

    assert result.success


@pytest.mark.asyncio
async def test_amount_below_smallest_unit_is_an_item_failure(sepolia):
    network = FakeNetwork()
    items = [TransferItem(ALICE, "1e-999999999"), TransferItem(BOB, "1")]

    outcomes = await _orchestrator(network=network).bulk_transfer(SENDER, "pw", items, sepolia)

    assert [o.success for o in outcomes] == [False, True]
    assert "decimal places" in outcomes[0].error
    assert [s["to"] for s in network.submitted] == [BOB]
