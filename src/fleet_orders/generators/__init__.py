"""Generators module for synthetic order books."""

from fleet_orders.generators.demo_orders import DemoOrderGenerator

__all__ = ["DemoOrderGenerator"]
