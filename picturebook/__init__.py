# Picture Book Generator
