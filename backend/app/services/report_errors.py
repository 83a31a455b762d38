class UnknownDataTypeError(ValueError):
    def __init__(self, data_type: object):
        self.data_type = data_type
        super().__init__(f"Unknown data type: {data_type}")


class ExportFailedError(RuntimeError):
    pass
