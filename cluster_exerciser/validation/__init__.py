from .durability_oracle import DurabilityOracle as DurabilityOracle
