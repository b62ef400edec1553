"""
Best-effort notifications about new leads
"""
