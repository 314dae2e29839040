from typing import Union

import sqlalchemy as sa


# Annotation for anything you can execute statements with
EngineOrConnection = Union[sa.engine.Engine, sa.engine.Connection]

# Annotation for dict rows (result rows returned as dicts)
SARowDict = dict
