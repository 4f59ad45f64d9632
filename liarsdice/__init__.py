"""
Liar's Dice - Two-seat bluffing dice game server.

The server holds authoritative game state and mediates turns between two
participants, one of which may be the computer. It provides:
- The session state machine (players, dice, bids, bluff resolution)
- A heuristic computer opponent
- A session registry with per-session serialized command handling
- A FastAPI WebSocket gateway
"""

__version__ = "0.1.0"
