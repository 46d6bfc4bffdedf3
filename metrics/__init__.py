"""StatsD protocol parsing, aggregation and rendering"""
