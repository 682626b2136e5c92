"""Confirmation prompt rendering."""

from __future__ import annotations

from ..types import Affordance, NftOperation, PendingKind, PendingRequest, Reply

PROMPT_HEADERS = {
    PendingKind.TRANSFER: "Please confirm the transfer",
    PendingKind.BALANCE: "Please confirm the balance lookup",
    PendingKind.NFT: "Please confirm the NFT operation",
}

# Marks a prompt re-emitted for a request that was already waiting.
REMINDER_ACTION = "PENDING_REMINDER"

_OPERATION_TITLES = {
    NftOperation.MINT: "Mint NFT",
    NftOperation.LIST: "List NFT",
    NftOperation.BUY: "Buy NFT",
    NftOperation.STAKE: "Stake NFT",
    NftOperation.UNSTAKE: "Unstake NFT",
    NftOperation.CREATE_LOAN: "Create loan",
    NftOperation.FULFILL_LOAN: "Fund loan",
    NftOperation.REPAY_LOAN: "Repay loan",
}


def operation_action(operation: NftOperation) -> str:
    return f"NFT_{operation.name}"


def operation_from_actions(actions: tuple[str, ...]) -> NftOperation | None:
    for action in actions:
        if action.startswith("NFT_"):
            name = action[len("NFT_") :]
            if name in NftOperation.__members__:
                return NftOperation[name]
    return None


def _summary(request: PendingRequest) -> list[str]:
    params = request.resolved_parameters
    if request.kind is PendingKind.TRANSFER:
        recipient = params["address"]
        if params.get("counterparty_label"):
            recipient = f"{params['counterparty_label']} ({recipient})"
        lines = [f"To: {recipient}", f"Amount: {params['amount']} ETH"]
        if params.get("list_type") == "blacklist":
            lines.append("Warning: this recipient is on your blacklist.")
        elif params.get("list_type") == "whitelist":
            lines.append("This recipient is on your whitelist.")
        return lines

    if request.kind is PendingKind.BALANCE:
        address = params.get("address")
        if not address:
            return ["Address: the agent wallet"]
        lines = [f"Address: {address}"]
        if params.get("derived_from_private_key"):
            lines.append("(derived from the private key you sent; the key itself is not stored)")
        return lines

    operation = NftOperation(params["operation"])
    lines = [f"Operation: {_OPERATION_TITLES[operation]}"]
    if "token_id" in params:
        lines.append(f"Token ID: {params['token_id']}")
    if "loan_id" in params:
        lines.append(f"Loan ID: {params['loan_id']}")
    if params.get("recipient"):
        lines.append(f"Recipient: {params['recipient']}")
    if params.get("price"):
        lines.append(f"Price: {params['price']} ETH")
    if params.get("amount"):
        lines.append(f"Amount: {params['amount']} ETH")
    if params.get("duration_days"):
        lines.append(f"Duration: {params['duration_days']} days")
    return lines


def build_prompt(request: PendingRequest, *, reminder: bool = False) -> Reply:
    header = PROMPT_HEADERS[request.kind]
    if reminder:
        header = f"{header} (still waiting for your answer)"
    body = "\n".join(_summary(request))
    text = f"{header}:\n\n{body}\n\nNetwork: Sepolia testnet\n\nReply yes to confirm or no to cancel."

    actions: tuple[str, ...] = (request.kind.prompt_action,)
    operation = request.resolved_parameters.get("operation")
    if operation:
        actions += (operation_action(NftOperation(operation)),)
    if reminder:
        actions += (REMINDER_ACTION,)

    return Reply(
        text=text,
        affordances=(
            Affordance("Confirm", request.kind.accept_token),
            Affordance("Cancel", request.kind.reject_token),
        ),
        actions=actions,
    )
