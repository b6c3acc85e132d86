"""Break Tracker package.

Feature modules (members, intervals, sync, reports) each keep a pure model,
a Protocol repository with its MySQL implementation, a service layer and a
thin Flask controller. `session.ClientSession` ties the interval store,
punch engine and reconciler of one connected viewer together.
"""
