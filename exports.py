import csv
import io
import json
from datetime import datetime
from typing import Optional

from models import StakingAdvice, WalletAnalysis
from utils import format_amount, format_percent


def to_text(
    analysis: WalletAnalysis,
    advice: Optional[StakingAdvice] = None,
    ai_insights: Optional[str] = None,
) -> str:
    """Plain-text staking report, the same sections as the spreadsheet exports."""
    strategy = analysis.strategy
    risk = analysis.risk_profile
    liquidity = analysis.liquidity_profile
    network = "testnet" if analysis.testnet_only else "mainnet"

    lines = [f"Wallet Analysis & Staking Strategy for {analysis.address} ({network})", ""]

    lines += [
        "PORTFOLIO OVERVIEW",
        f"Total Native Balance: {format_amount(analysis.total_balance)} ETH",
        f"Token Holdings: {len(analysis.token_holdings)} tokens",
        f"Active Chains: {len(analysis.native_balances)}",
        f"Diversification Score: {analysis.diversification_score:.0f}/100",
        f"Current Staking Positions: {len(analysis.current_staking_positions)}",
    ]
    if analysis.chains_unavailable:
        lines.append(f"Unavailable Chains: {', '.join(analysis.chains_unavailable)}")
    lines.append("")

    lines += [
        "STAKING STRATEGY",
        f"Recommended Allocation: {strategy.recommended_allocation:.0f}% of portfolio",
        f"Risk Tolerance: {strategy.risk_tolerance.value}",
        f"Liquidity Buffer: {strategy.liquidity_buffer:.0f}%",
        f"Staking Horizon: {strategy.staking_horizon} days",
        f"Preferred Protocols: {', '.join(strategy.preferred_protocols) or 'N/A'}",
        "",
    ]

    if analysis.recommendations:
        lines.append("STAKING RECOMMENDATIONS")
        for i, rec in enumerate(analysis.recommendations, 1):
            lines += [
                f"{i}. {rec.token} on {rec.chain} ({rec.priority.value} priority)",
                f"   Amount: {format_amount(rec.recommended_amount)} {rec.token}",
                f"   Expected Return: {format_amount(rec.expected_return)} {rec.token}/year",
                f"   Risk: {rec.risk_assessment}",
                f"   Reasoning: {rec.reasoning}",
            ]
            if rec.options:
                top = rec.options[0]
                lines.append(f"   Top Protocol: {top.protocol} ({top.expected_apr}% APR)")
                lines.append(f"   Description: {top.description}")
        lines.append("")
    else:
        lines += ["STAKING RECOMMENDATIONS", "None: no holding meets the minimum thresholds.", ""]

    if analysis.current_staking_positions:
        lines.append("CURRENT STAKING POSITIONS")
        for position in analysis.current_staking_positions:
            lines.append(f"- {position.symbol}: {format_amount(position.balance)} ({position.chain})")
        lines.append("")

    lines += [
        "RISK PROFILE",
        f"Overall Risk Score: {risk.risk_score:.0f}/100",
        f"Risk Tolerance: {risk.risk_tolerance.value}",
        f"Staking Risk Tolerance: {risk.staking_risk_tolerance.value}",
        f"Concentration Risk: {format_percent(risk.concentration_risk)}",
        f"Liquidity Risk: {format_percent(risk.liquidity_risk)}",
        "",
        "LIQUIDITY & STAKING CAPACITY",
        f"Liquidity Ratio: {format_percent(liquidity.liquidity_ratio)}",
        f"Staking Capacity: {format_amount(liquidity.staking_capacity, 9)} ETH equivalent",
        f"Emergency Buffer: {format_amount(liquidity.emergency_buffer, 9)} ETH",
        "",
    ]

    if analysis.behavior_patterns:
        lines.append("BEHAVIOR PATTERNS")
        for pattern in analysis.behavior_patterns:
            lines.append(f"- {pattern.pattern}: {pattern.description}")
            if pattern.staking_implication:
                lines.append(f"  Implication: {pattern.staking_implication}")
        lines.append("")

    if advice:
        if advice.actionable_insights:
            lines.append("INSIGHTS")
            lines += [f"- {insight}" for insight in advice.actionable_insights]
            lines.append("")
        if advice.risk_warnings:
            lines.append("WARNINGS")
            lines += [f"- {warning}" for warning in advice.risk_warnings]
            lines.append("")

    if ai_insights:
        lines += ["AI INSIGHTS", ai_insights, ""]

    return "\n".join(lines).rstrip() + "\n"


def to_csv(analysis: WalletAnalysis, ai_insights: Optional[str] = None) -> bytes:
    """Export wallet analysis to CSV."""
    out = io.StringIO()
    w = csv.writer(out)

    w.writerow(["STAKING WALLET ANALYSIS REPORT"])
    w.writerow(["Generated", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
    w.writerow([])

    # ── Summary ───────────────────────────────────────────────────────
    w.writerow(["SUMMARY"])
    w.writerow(["Address", analysis.address])
    w.writerow(["Network", "testnet" if analysis.testnet_only else "mainnet"])
    w.writerow(["Chains Analyzed", ", ".join(analysis.chains_analyzed)])
    w.writerow(["Chains Unavailable", ", ".join(analysis.chains_unavailable) or "None"])
    w.writerow(["Total Native Balance (ETH)", format_amount(analysis.total_balance)])
    w.writerow(["Diversification Score", f"{analysis.diversification_score:.0f}"])
    w.writerow(["Risk Score", f"{analysis.risk_profile.risk_score:.0f}"])
    w.writerow(["Risk Tolerance", analysis.risk_profile.risk_tolerance.value])
    w.writerow(["Recommended Allocation", f"{analysis.strategy.recommended_allocation:.0f}%"])
    w.writerow([])

    # ── Balances ──────────────────────────────────────────────────────
    w.writerow(["BALANCES"])
    w.writerow(["Chain", "Asset", "Balance", "Stakeable"])
    for chain, balance in analysis.native_balances.items():
        w.writerow([chain, "ETH", format_amount(balance, 9), "Yes"])
    for t in analysis.token_holdings:
        w.writerow([t.chain, t.symbol, format_amount(t.balance), "Yes" if t.is_stakeable else "No"])
    w.writerow([])

    # ── Recommendations ───────────────────────────────────────────────
    w.writerow(["STAKING RECOMMENDATIONS"])
    w.writerow([
        "Token", "Chain", "Priority", "Amount", "Available", "Protocol", "APR (%)",
        "Risk Level", "Expected Return", "Reasoning",
    ])
    for rec in analysis.recommendations:
        top = rec.options[0] if rec.options else None
        w.writerow([
            rec.token, rec.chain, rec.priority.value,
            format_amount(rec.recommended_amount), format_amount(rec.available_balance),
            top.protocol if top else "N/A", top.expected_apr if top else "N/A",
            top.risk_level.value if top else "N/A",
            format_amount(rec.expected_return), rec.reasoning,
        ])
    w.writerow([])

    # ── AI Insights ───────────────────────────────────────────────────
    if ai_insights:
        w.writerow(["AI INSIGHTS"])
        for line in ai_insights.split("\n"):
            w.writerow([line])

    return out.getvalue().encode("utf-8")


def to_json(analysis: WalletAnalysis, advice: Optional[StakingAdvice] = None) -> bytes:
    """Export wallet analysis (and advice, if given) as formatted JSON."""
    payload = {"analysis": analysis.model_dump()}
    if advice is not None:
        payload["advice"] = advice.model_dump()
    return json.dumps(payload, indent=2, default=str).encode("utf-8")


def to_excel(analysis: WalletAnalysis) -> bytes:
    """Export wallet analysis to formatted Excel workbook."""
    import openpyxl
    from openpyxl.styles import Alignment, Font, PatternFill

    wb = openpyxl.Workbook()

    # ── Summary Sheet ─────────────────────────────────────────────────
    ws = wb.active
    ws.title = "Summary"

    accent = PatternFill(start_color="2d6a4f", end_color="2d6a4f", fill_type="solid")
    dark = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
    white_bold = Font(bold=True, color="FFFFFF")
    bold = Font(bold=True)

    ws.merge_cells("A1:D1")
    ws["A1"] = "Staking Wallet Analysis Report"
    ws["A1"].font = Font(bold=True, size=16, color="FFFFFF")
    ws["A1"].fill = accent
    ws["A1"].alignment = Alignment(horizontal="center")

    risk = analysis.risk_profile
    rows = [
        ("Address", analysis.address),
        ("Network", "testnet" if analysis.testnet_only else "mainnet"),
        ("Generated", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
        ("", ""),
        ("Total Native Balance (ETH)", format_amount(analysis.total_balance)),
        ("Token Holdings", str(len(analysis.token_holdings))),
        ("Diversification Score", f"{analysis.diversification_score:.0f}/100"),
        ("Risk Score", f"{risk.risk_score:.0f}/100"),
        ("Risk Tolerance", risk.risk_tolerance.value),
        ("Concentration Risk", format_percent(risk.concentration_risk)),
        ("Liquidity Risk", format_percent(risk.liquidity_risk)),
        ("Recommended Allocation", f"{analysis.strategy.recommended_allocation:.0f}%"),
        ("Chains Unavailable", ", ".join(analysis.chains_unavailable) or "None"),
    ]
    for i, (label, value) in enumerate(rows, 3):
        ws[f"A{i}"] = label
        ws[f"A{i}"].font = bold
        ws[f"B{i}"] = value

    # ── Recommendations Sheet ─────────────────────────────────────────
    ws2 = wb.create_sheet("Recommendations")
    headers = [
        "Token", "Chain", "Priority", "Amount", "Available", "Protocol",
        "APR (%)", "Risk Level", "Lock (days)", "Expected Return",
    ]
    for col, h in enumerate(headers, 1):
        cell = ws2.cell(row=1, column=col, value=h)
        cell.font = white_bold
        cell.fill = dark

    for i, rec in enumerate(analysis.recommendations, 2):
        top = rec.options[0] if rec.options else None
        ws2.cell(row=i, column=1, value=rec.token)
        ws2.cell(row=i, column=2, value=rec.chain)
        ws2.cell(row=i, column=3, value=rec.priority.value)
        ws2.cell(row=i, column=4, value=format_amount(rec.recommended_amount))
        ws2.cell(row=i, column=5, value=format_amount(rec.available_balance))
        ws2.cell(row=i, column=6, value=top.protocol if top else "N/A")
        ws2.cell(row=i, column=7, value=top.expected_apr if top else None)
        ws2.cell(row=i, column=8, value=top.risk_level.value if top else "N/A")
        ws2.cell(row=i, column=9, value=(top.lock_period or 0) if top else None)
        ws2.cell(row=i, column=10, value=format_amount(rec.expected_return))

    # ── Holdings Sheet ────────────────────────────────────────────────
    ws3 = wb.create_sheet("Holdings")
    for col, h in enumerate(["Chain", "Asset", "Balance", "Stakeable"], 1):
        cell = ws3.cell(row=1, column=col, value=h)
        cell.font = white_bold
        cell.fill = dark

    row = 2
    for chain, balance in analysis.native_balances.items():
        ws3.cell(row=row, column=1, value=chain)
        ws3.cell(row=row, column=2, value="ETH")
        ws3.cell(row=row, column=3, value=format_amount(balance, 9))
        ws3.cell(row=row, column=4, value="Yes")
        row += 1
    for t in analysis.token_holdings:
        ws3.cell(row=row, column=1, value=t.chain)
        ws3.cell(row=row, column=2, value=t.symbol)
        ws3.cell(row=row, column=3, value=format_amount(t.balance))
        ws3.cell(row=row, column=4, value="Yes" if t.is_stakeable else "No")
        row += 1

    # Auto-fit column widths
    for sheet in [ws, ws2, ws3]:
        for col in sheet.columns:
            max_len = max(len(str(cell.value or "")) for cell in col)
            sheet.column_dimensions[col[0].column_letter].width = min(max_len + 3, 45)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
