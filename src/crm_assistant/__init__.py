"""
CRM Assistant - sales Q&A over a salesperson's live business data.

This service answers a chat message by:
1. Gathering a bounded snapshot of the user's leads, activities, orders,
   partners and products (first message of a conversation only)
2. Rendering the snapshot ahead of the user's question
3. Streaming the model's answer back as server-sent events
"""

__version__ = "0.1.0"
