"""
Text / Image → Tokens → LLM Normalization → LLM Classification → Source-Linked Amounts

A deterministic, testable pipeline that pulls monetary amounts out of medical
bills and receipts, labels them, and links every amount back to the line of
text it came from. LLM stages degrade to rule-based fallbacks.
"""

__version__ = "0.1.0"
