import abc

#
# ILoc: where an error message points to
# - e.g. a span of a source file
#


class ILoc(object, metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def __str__(self):
        pass


class TextFileLoc(ILoc):
    text_file_path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __init__(self, text_file_path, start_line, start_column, end_line, end_column):
        super().__init__()
        self.text_file_path = text_file_path
        self.start_line = start_line
        self.start_column = start_column
        self.end_line = end_line
        self.end_column = end_column

    def __str__(self):
        return f"{self.text_file_path}:{self.short_text_desc}"

    @property
    def short_text_desc(self):
        # columns are 0-based in the AST but printed 1-based, like most editors expect
        if self.start_line == self.end_line:
            if self.start_column == self.end_column:
                return f"{self.start_line}:{1+self.start_column}"
            else:
                return f"{self.start_line}:{1+self.start_column}-{1+self.end_column}"
        else:
            return f"{self.start_line}:{1+self.start_column}-{self.end_line}:{1+self.end_column}"

    @staticmethod
    def of_node(text_file_path, node) -> "TextFileLoc":
        end_line = getattr(node, 'end_lineno', None) or node.lineno
        end_column = getattr(node, 'end_col_offset', None)
        if end_column is None:
            end_column = node.col_offset
        return TextFileLoc(text_file_path, node.lineno, node.col_offset, end_line, end_column)
