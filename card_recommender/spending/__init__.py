"""Transaction history analysis: categorisation, monthly averages, profile building."""
