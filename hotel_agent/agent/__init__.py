"""Sprachverarbeitung: Datumsparser, Slot-Extraktion, LLM-Orakel."""

from hotel_agent.agent.date_parser import collect_dates, nights_between, parse_date
from hotel_agent.agent.llm import LLMSlotOracle, extract_with_oracle, llm_oracle, reconcile_slots
from hotel_agent.agent.slot_extractor import SlotExtractor, slot_extractor

__all__ = [
    "parse_date",
    "collect_dates",
    "nights_between",
    "SlotExtractor",
    "slot_extractor",
    "LLMSlotOracle",
    "llm_oracle",
    "extract_with_oracle",
    "reconcile_slots",
]
