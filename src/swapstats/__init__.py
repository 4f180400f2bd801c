"""USD swap volume and swap count aggregation over a PostHog swap event stream."""
