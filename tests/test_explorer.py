"""
Tests for the Etherscan verification client against a local aiohttp server.
"""

import pytest
from aiohttp import test_utils, web

from deploytasks.engines.build_info import ContractSource
from deploytasks.engines.config import ExplorerConfig
from deploytasks.engines.explorer import (
    ContractNotIndexedError,
    EtherscanVerifier,
    ExplorerAPIError,
    VerificationFailedError,
    VerificationPendingError,
)

ADDRESS = "0x" + "ab" * 20

SOURCE = ContractSource(
    fully_qualified_name="contracts/Token.sol:Token",
    compiler_version="v0.8.17+commit.8df45f5f",
    standard_json_input={"language": "Solidity", "sources": {}},
)


def encode_deploy(args):
    return "0x" + "00" * 31 + f"{len(args):02x}"


class FakeExplorer:
    """Scripted Etherscan API: one submit answer, a queue of status answers."""

    def __init__(self, submit=("1", "guid-123"), statuses=("Pass - Verified",), status_code=200):
        self.submit = submit
        self.statuses = list(statuses)
        self.status_code = status_code
        self.requests = []

    async def handle(self, request):
        if request.method == "POST":
            form = await request.post()
            self.requests.append(("POST", dict(form)))
            status, result = self.submit
            return web.json_response(
                {"status": status, "message": "OK" if status == "1" else "NOTOK", "result": result},
                status=self.status_code,
            )

        self.requests.append(("GET", dict(request.query)))
        result = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return web.json_response({"status": "1", "message": "OK", "result": result})

    def server(self):
        app = web.Application()
        app.router.add_route("*", "/api", self.handle)
        return test_utils.TestServer(app)

    def gets(self):
        return [params for method, params in self.requests if method == "GET"]


def make_config(server, **overrides):
    values = {
        "api_url": str(server.make_url("/api")),
        "api_key": "secret-key",
        "poll_backoff": 0.01,
        "poll_retries": 3,
    }
    values.update(overrides)
    return ExplorerConfig(**values)


@pytest.mark.asyncio
async def test_submit_sends_standard_json_input():
    fake = FakeExplorer()
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            guid = await verifier.submit(ADDRESS, ["Token", 1000])

    assert guid == "guid-123"
    method, form = fake.requests[0]
    assert method == "POST"
    assert form["apikey"] == "secret-key"
    assert form["action"] == "verifysourcecode"
    assert form["codeformat"] == "solidity-standard-json-input"
    assert form["contractaddress"] == ADDRESS
    assert form["contractname"] == "contracts/Token.sol:Token"
    assert form["compilerversion"] == "v0.8.17+commit.8df45f5f"
    assert form["constructorArguements"] == "00" * 31 + "02"
    assert '"language": "Solidity"' in form["sourceCode"]


@pytest.mark.asyncio
async def test_verify_polls_until_passed():
    fake = FakeExplorer(statuses=["Pending in queue", "Pending in queue", "Pass - Verified"])
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            result = await verifier.verify(ADDRESS, [])

    assert result.guid == "guid-123"
    assert result.message == "Pass - Verified"
    assert not result.already_verified
    assert len(fake.gets()) == 3
    assert fake.gets()[0]["guid"] == "guid-123"
    assert fake.gets()[0]["action"] == "checkverifystatus"


@pytest.mark.asyncio
async def test_already_verified_skips_polling():
    fake = FakeExplorer(submit=("0", "Contract source code already verified"))
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            result = await verifier.verify(ADDRESS, [])

    assert result.already_verified
    assert fake.gets() == []


@pytest.mark.asyncio
async def test_not_indexed_contract():
    fake = FakeExplorer(submit=("0", f"Unable to locate ContractCode at {ADDRESS}"))
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            with pytest.raises(ContractNotIndexedError) as exc_info:
                await verifier.verify(ADDRESS, [])

    assert exc_info.value.address == ADDRESS


@pytest.mark.asyncio
async def test_other_submit_rejection():
    fake = FakeExplorer(submit=("0", "Invalid API Key"))
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            with pytest.raises(VerificationFailedError, match="Invalid API Key"):
                await verifier.submit(ADDRESS, [])


@pytest.mark.asyncio
async def test_rejected_source_is_not_polled_again():
    fake = FakeExplorer(statuses=["Fail - Unable to verify"])
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            with pytest.raises(VerificationFailedError, match="Unable to verify"):
                await verifier.verify(ADDRESS, [])

    assert len(fake.gets()) == 1


@pytest.mark.asyncio
async def test_pending_forever_exhausts_polls():
    fake = FakeExplorer(statuses=["Pending in queue"])
    async with fake.server() as server:
        config = make_config(server, poll_retries=2)
        async with EtherscanVerifier(SOURCE, encode_deploy, config) as verifier:
            with pytest.raises(VerificationPendingError):
                await verifier.verify(ADDRESS, [])

    assert len(fake.gets()) == 3


@pytest.mark.asyncio
async def test_http_error_status():
    fake = FakeExplorer(status_code=502)
    async with fake.server() as server:
        async with EtherscanVerifier(SOURCE, encode_deploy, make_config(server)) as verifier:
            with pytest.raises(ExplorerAPIError) as exc_info:
                await verifier.submit(ADDRESS, [])

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_verify_without_context_manager_manages_session():
    fake = FakeExplorer()
    async with fake.server() as server:
        verifier = EtherscanVerifier(SOURCE, encode_deploy, make_config(server))
        result = await verifier.verify(ADDRESS, [])

    assert result.message == "Pass - Verified"
    assert verifier._session is None


@pytest.mark.asyncio
async def test_request_without_session_raises():
    verifier = EtherscanVerifier(SOURCE, encode_deploy, ExplorerConfig())

    with pytest.raises(RuntimeError, match="Session not initialized"):
        await verifier.check_status("guid")
