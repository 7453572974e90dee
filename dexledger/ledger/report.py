"""Console reports: a user's cost-basis positions and a transaction's swap legs."""
from __future__ import annotations

from typing import Any, Dict, List

from dexledger.db.cost_basis_repo import CostBasisRepo
from dexledger.db.token_repo import TokenRepo
from dexledger.models import SwapLeg, Transaction


def position_summaries(
    positions: CostBasisRepo,
    tokens: TokenRepo,
    user_address: str,
) -> List[Dict[str, Any]]:
    results = []
    for p in positions.list_for_user(user_address):
        token = tokens.get(p.token_id)
        results.append({
            "token_id": p.token_id,
            "symbol": token.symbol if token else "?",
            "outstanding": p.outstanding_quantity,
            "avg_cost_usd": p.weighted_average_cost_usd,
            "consumed": p.consumed_quantity,
            "profit_usd": p.realized_profit_usd,
            "loss_usd": p.realized_loss_usd,
            "net_usd": p.realized_net_proceeds_usd,
            "unrecognizable": p.unrecognizable_quantity,
            "sales": p.sale_count,
            "wallet_verified": p.contract_attribution_disproven,
        })
    results.sort(key=lambda r: r["net_usd"], reverse=True)
    return results


def print_positions(user_address: str, rows: List[Dict[str, Any]]) -> None:
    print(f"Cost basis report for {user_address}")
    print(f"{'='*96}")
    if not rows:
        print("  (no positions)")
        return

    print(f"  {'Token':<10} {'Outstanding':>16} {'Avg cost $':>12} "
          f"{'Net $':>14} {'Profit $':>14} {'Loss $':>14} {'Sales':>6}")
    for r in rows:
        print(f"  {r['symbol'][:10]:<10} {r['outstanding']:>16.4f} {r['avg_cost_usd']:>12.6f} "
              f"{r['net_usd']:>14.2f} {r['profit_usd']:>14.2f} {r['loss_usd']:>14.2f} "
              f"{r['sales']:>6}")
        if r["unrecognizable"] > 0:
            print(f"  {'':<10} sold {r['unrecognizable']:.4f} more than tracked holdings")

    total_net = sum(r["net_usd"] for r in rows)
    print(f"{'-'*96}")
    print(f"  Total realized net: ${total_net:,.2f} across {len(rows)} tokens")


def print_swap_legs(tx: Transaction, legs: List[SwapLeg]) -> None:
    """One line per swap leg of a transaction, in log order."""
    state = "chain open" if tx.chain_in_progress else "settled"
    print(f"Transaction {tx.id} (block {tx.block_number}, {state})")
    print(f"{'='*96}")
    if not legs:
        print("  (no swap legs)")
        return

    print(f"  {'Log':>5} {'Pair':<12} {'To':<12} {'Debitor':<12} {'USD':>14}  Recognized")
    for leg in legs:
        debitor = leg.debitor[:12] if leg.debitor else "-"
        print(f"  {leg.log_index:>5} {leg.pair_id[:12]:<12} {leg.to_address[:12]:<12} "
              f"{debitor:<12} {leg.amount_usd:>14.2f}  {'yes' if leg.accounted else 'no'}")
    if tx.chain_beneficiary:
        print(f"  Chain beneficiary: {tx.chain_beneficiary}")
