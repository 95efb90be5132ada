"""Break-even and swap-window detection over a projection series."""

from __future__ import annotations

from carequity.models.projection import (
    NO_SWAP_WINDOW,
    MonthlyProjectionPoint,
    SwapAnalysis,
    SwapWindow,
    check_channel,
)


def contract_end_month(series: list[MonthlyProjectionPoint]) -> int:
    """Month flagged as contract end, or the last month when none is flagged."""
    for p in series:
        if p.is_contract_end:
            return p.month_index
    return series[-1].month_index if series else -1


def analyze(
    series: list[MonthlyProjectionPoint],
    channel: str = 'trade_in',
    *,
    current_month: int | None = None,
) -> SwapAnalysis:
    """Find the break-even month and the swap window for one sale channel.

    Break-even is the first month anywhere in the horizon with equity >= 0. The swap
    window is the run of consecutive non-negative months inside [0, contract end]
    holding the highest peak; on equal peaks the earlier run wins. Single pass.
    """
    key = check_channel(channel)
    term = contract_end_month(series)

    break_even: int | None = None
    best: tuple[int, int, int, float] | None = None
    run: list | None = None  # [start, end, peak_month, peak]

    def close(current_run, best_run):
        if current_run is None:
            return best_run
        if best_run is None or current_run[3] > best_run[3]:
            return tuple(current_run)
        return best_run

    for p in series:
        equity = float(getattr(p.cash_position, key))
        month = p.month_index
        if break_even is None and equity >= 0:
            break_even = month
        if month > term:
            continue
        if equity >= 0:
            if run is None:
                run = [month, month, month, equity]
            else:
                run[1] = month
                if equity > run[3]:
                    run[2] = month
                    run[3] = equity
        else:
            best = close(run, best)
            run = None
    best = close(run, best)

    if best is None:
        return SwapAnalysis(channel=key, break_even_month=break_even, swap_window=NO_SWAP_WINDOW)

    start, end, peak_month, peak = best
    in_window = current_month is not None and start <= int(current_month) <= end
    window = SwapWindow(
        start_month=start,
        end_month=end,
        peak_month=peak_month,
        peak_equity=peak,
        is_in_window=in_window,
    )
    return SwapAnalysis(channel=key, break_even_month=break_even, swap_window=window)
