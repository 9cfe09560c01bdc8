"""Console chat front end."""
