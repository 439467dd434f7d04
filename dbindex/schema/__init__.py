"JSON schemas for the index data input and the API output."
